"""CheckService: compile template files and validate instance files."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ruamel.yaml.error import YAMLError

from cdl.config.models import CompileConfig
from cdl.domain.errors import CdlError
from cdl.domain.grammar import compile_template
from cdl.domain.rules import rule_kind
from cdl.domain.validator import CompiledTemplate
from cdl.services.loader import load_instance, load_template
from cdl.services.result import ServiceError, ServiceResult

logger = logging.getLogger(__name__)

_LOAD_ERRORS = (OSError, UnicodeError, ValueError, YAMLError)


class _Failure(Exception):
    """Internal short-circuit carrying a ready-made ServiceError."""

    def __init__(self, error: ServiceError) -> None:
        super().__init__(error.message)
        self.error = error


class CheckService:
    """Compile templates and validate instances loaded from files.

    Expected failures never raise; they are reported through
    :class:`ServiceResult` with codes ``LOAD_FAILED``,
    ``COMPILE_FAILED``, or ``VALIDATION_FAILED``.
    """

    def __init__(self, config: CompileConfig | None = None) -> None:
        self._config = config or CompileConfig()

    def _load(self, loader: Callable[[Path], Any], path: Path) -> Any:
        try:
            return loader(path)
        except _LOAD_ERRORS as exc:
            logger.debug("Failed to load %s", path, exc_info=True)
            raise _Failure(
                ServiceError(
                    code="LOAD_FAILED",
                    message=f"Cannot load {path}: {exc}",
                    detail={"path": str(path)},
                )
            ) from exc

    def _compile(self, template_path: Path) -> CompiledTemplate:
        template = self._load(load_template, template_path)
        try:
            return compile_template(
                template, allow_modifier_override=self._config.allow_modifier_override
            )
        except CdlError as err:
            raise _Failure(ServiceError.from_cdl_error("COMPILE_FAILED", err)) from err

    def compile(self, template_path: Path) -> ServiceResult:
        """Compile a template file and describe its rules."""
        try:
            ct = self._compile(template_path)
        except _Failure as failure:
            return ServiceResult(ok=False, op="compile", error=failure.error)

        rules = {name: rule_kind(ct.rules[name]) for name in ct.rule_names()}
        return ServiceResult(
            ok=True,
            op="compile",
            data={"template": str(template_path), "count": len(rules), "rules": rules},
        )

    def check(self, template_path: Path, instance_path: Path) -> ServiceResult:
        """Compile *template_path* and validate *instance_path* against it."""
        try:
            ct = self._compile(template_path)
            instance = self._load(load_instance, instance_path)
        except _Failure as failure:
            return ServiceResult(ok=False, op="check", error=failure.error)

        err = ct.check(instance)
        if err is not None:
            return ServiceResult(
                ok=False,
                op="check",
                error=ServiceError.from_cdl_error("VALIDATION_FAILED", err),
            )
        logger.debug("Validated %s against %s", instance_path, template_path)
        return ServiceResult(
            ok=True,
            op="check",
            data={
                "template": str(template_path),
                "instance": str(instance_path),
                "valid": True,
            },
        )
