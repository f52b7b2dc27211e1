from . import host_keys, keypair, system_logger

__all__ = ["host_keys", "keypair", "system_logger"]
