from .crm import CRMSource, RemoteCompany, RemoteOwner, RemoteRecord

__all__ = ["CRMSource", "RemoteCompany", "RemoteOwner", "RemoteRecord"]
