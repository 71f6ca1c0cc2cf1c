from .job_validator import validate, violations_from

__all__ = ["validate", "violations_from"]
