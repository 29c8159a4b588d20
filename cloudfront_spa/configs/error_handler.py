"""
Centralized error handling for the CloudFront SPA deployment plugin.

This module defines the exception hierarchy raised by every stage of the
plugin together with validation helpers and decorators for the common
checks (required fields, non-empty strings, template name collisions,
schema violations, initialized configuration).
"""

from __future__ import annotations
import inspect
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Union

from jsonschema import Draft202012Validator


class SpaDeployError(Exception):
    """Base class for every error raised by the plugin."""


class ConfigurationError(SpaDeployError, ValueError):
    """Configuration is missing or does not validate."""


class TemplateCollisionError(ConfigurationError):
    """Generated logical names clash with names already in the template."""


class ResolutionError(SpaDeployError):
    """A stack output could not be resolved."""


class ProcessFailedError(SpaDeployError):
    """
    An external command exited with a non-zero status.

    Attributes:
        command: Executable that was run
        status: Exit status reported by the process
    """

    def __init__(self, message: str, command: str, status: int) -> None:
        super().__init__(message)
        self.command = command
        self.status = status


class RemovalError(SpaDeployError):
    """Objects could not be deleted from a bucket."""


class ErrorHandler:
    """
    Validation helpers shared by the configuration loaders and builders.
    """

    @staticmethod
    def validate_file_exists(
            file_path: Union[str, Path],
            file_type: str = "File"
        ) -> None:
        """
        Validate that a file exists.

        Args:
            file_path: File path to validate
            file_type: Type description for error messages

        Raises:
            ConfigurationError: If file does not exist
        """
        if not Path(file_path).is_file():
            raise ConfigurationError(f"{file_type} not found: {file_path}")

    @staticmethod
    def validate_required_fields(
            data: Dict[str, Any],
            required_fields: List[str],
            context: str = "Configuration"
        ) -> None:
        """
        Validate that all required fields are present in a dictionary.

        Args:
            data: Dictionary to validate
            required_fields: List of field names that must be present
            context: Context description for error messages

        Raises:
            ConfigurationError: If any required fields are missing
        """
        missing_fields = [field for field in required_fields if field not in data]
        if missing_fields:
            raise ConfigurationError(f"{context} missing required fields: {', '.join(missing_fields)}")

    @staticmethod
    def validate_enum_value(
            value: Any,
            valid_values: List[Any],
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is one of the allowed enum values.

        Raises:
            ConfigurationError: If value is not in the allowed list
        """
        if value not in valid_values:
            raise ConfigurationError(f"{context} field '{field_name}' must be one of: {', '.join(map(str, valid_values))}")

    @staticmethod
    def validate_type(
            value: Any,
            expected_type: Union[type, tuple],
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is of the expected type.

        Raises:
            ConfigurationError: If value is not of the expected type
        """
        if not isinstance(value, expected_type):
            expected = getattr(expected_type, "__name__", None) or " or ".join(t.__name__ for t in expected_type)
            raise ConfigurationError(f"{context} field '{field_name}' must be of type {expected}, got {type(value).__name__}")

    @staticmethod
    def validate_string_not_empty(
            value: Any,
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is a non-empty string.

        Raises:
            ConfigurationError: If value is not a non-empty string
        """
        if not isinstance(value, str) or value.strip() == "":
            raise ConfigurationError(f"{context} field '{field_name}' must be a non-empty string")

    @staticmethod
    def validate_exactly_one(
            data: Dict[str, Any],
            fields: List[str],
            context: str = "Configuration"
        ) -> None:
        """
        Validate that exactly one of the given fields is present.

        Args:
            data: Dictionary to validate
            fields: Mutually exclusive field names
            context: Context description for error messages

        Raises:
            ConfigurationError: If none or more than one field is present
        """
        present = [field for field in fields if field in data]
        if len(present) != 1:
            raise ConfigurationError(
                f"{context} requires exactly one of: {', '.join(fields)} (got {len(present)})"
            )

    @staticmethod
    def validate_schema(
            data: Any,
            schema: Dict[str, Any],
            context: str = "Configuration"
        ) -> None:
        """
        Validate data against a JSON schema, reporting every violation.

        Args:
            data: Document to validate
            schema: JSON schema (draft 2020-12)
            context: Context description for error messages

        Raises:
            ConfigurationError: If the document has schema errors
        """
        validator = Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
        if errors:
            details = "; ".join(
                f"{'/'.join(map(str, e.path)) or '(root)'}: {e.message}" for e in errors
            )
            raise ConfigurationError(f"{context} is invalid: {details}")

    @staticmethod
    def validate_no_collisions(
            existing: Iterable[str],
            generated: Iterable[str],
            section: str
        ) -> None:
        """
        Validate that generated logical names are not already taken.

        Args:
            existing: Names already present in the template section
            generated: Names about to be merged into the section
            section: Template section name for error messages

        Raises:
            TemplateCollisionError: If any generated name is already present
        """
        clashes = sorted(set(existing) & set(generated))
        if clashes:
            raise TemplateCollisionError(
                f"Names already defined in template {section}: {', '.join(clashes)}"
            )


class ValidationDecorators:
    """
    Decorators for common validation patterns.
    """

    @staticmethod
    def requires_config(config_attr: str = "config"):
        """
        Decorator that refuses to run a hook until configuration is loaded.

        Works for both plain and coroutine methods.

        Args:
            config_attr: Name of the instance attribute holding the config

        Returns:
            Decorator function
        """
        def check(instance: Any, func: Callable) -> None:
            if getattr(instance, config_attr, None) is None:
                raise ConfigurationError(
                    f"{type(instance).__name__}.{func.__name__} called before configuration was initialized"
                )

        def decorator(func: Callable) -> Callable:
            if inspect.iscoroutinefunction(func):
                @wraps(func)
                async def async_wrapper(self, *args, **kwargs):
                    check(self, func)
                    return await func(self, *args, **kwargs)
                return async_wrapper

            @wraps(func)
            def wrapper(self, *args, **kwargs):
                check(self, func)
                return func(self, *args, **kwargs)
            return wrapper
        return decorator
