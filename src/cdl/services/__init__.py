"""Service layer: file loading and check operations returning ServiceResult."""
