from .fee_manager import FeeManager

__all__ = ["FeeManager"]
