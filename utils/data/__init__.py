from .yaml_cases_loader import InvalidYamlFormatError, load_yaml_cases

__all__ = ["InvalidYamlFormatError", "load_yaml_cases"]
