from evparse.clients.rpc import RPC

__all__ = ["RPC"]
