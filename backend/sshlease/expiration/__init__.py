from .manager import LeaseManager

__all__ = ["LeaseManager"]
