"""Exception taxonomy for service discovery runs."""


class ServiceLoaderError(Exception):
    """Base class for every error raised by serviceloader."""


class ConfigurationError(ServiceLoaderError):
    """Invalid run configuration, such as an unusable classpath entry."""


class ServiceTypeResolutionError(ServiceLoaderError):
    """A declared service type could not be resolved on the classpath."""

    def __init__(self, service_name: str, reason: str = "") -> None:
        self.service_name = service_name
        self.reason = reason
        message = f"Could not load service type: {service_name}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ClassFormatError(ServiceLoaderError):
    """A class file is structurally invalid."""


class ServiceFileWriteError(ServiceLoaderError):
    """A service file could not be written."""

    def __init__(self, path, reason: str = "") -> None:
        self.path = path
        message = f"Error creating file {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
