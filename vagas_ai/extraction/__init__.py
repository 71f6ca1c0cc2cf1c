from .json_extractor import extract_json, repair_json_string

__all__ = ["extract_json", "repair_json_string"]
