class BaseValidationError(ValueError):
    pass
class ShapeError(BaseValidationError):
    pass
class ResolutionError(BaseValidationError):
    pass
class ConfigurationError(BaseValidationError):
    pass
class OutOfBoundsError(BaseValidationError):
    pass
class UnknownShadingMode(BaseValidationError):
    pass
class UnknownBackend(BaseValidationError):
    pass
