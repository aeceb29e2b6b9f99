from ape import networks

from xterio_deployment.constants import LOCAL_BLOCKCHAIN_ENVIRONMENTS


def is_local_network() -> bool:
    """Returns True when connected to a development network."""
    return networks.provider.network.name in LOCAL_BLOCKCHAIN_ENVIRONMENTS
