from ratio1_sdk.runtime import from_env

__all__ = ["from_env"]
