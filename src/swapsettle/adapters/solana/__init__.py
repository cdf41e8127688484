from .account_provisioner import SolanaAccountProvisioner
from .chain_client import SolanaChainClient

__all__ = ["SolanaAccountProvisioner", "SolanaChainClient"]
