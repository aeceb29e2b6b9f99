from pathlib import Path

import xterio_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(xterio_deployment.__file__).parent
PLANS_DIR = DEPLOYMENT_DIR / "plans"

#
# Networks
#

LOCAL_BLOCKCHAIN_ENVIRONMENTS = ["local"]
ETHERSCAN_API_KEY_ENVVAR = "ETHERSCAN_API_KEY"

#
# Runner environment
#

SKIP_VERIFY_ENVVAR = "SKIP_VERIFY"
VERIFY_ADDRESS_ENVVAR = "VERIFY_ADDRESS"

#
# Contracts
#

PROXY_CONTRACT_NAME = "TransparentUpgradeableProxy"
PROXY_ADMIN_CONTRACT_NAME = "ProxyAdmin"
INITIALIZER_METHOD = "initialize"

# EIP1967 Admin slot - https://eips.ethereum.org/EIPS/eip-1967#admin-address
EIP1967_ADMIN_SLOT = 0xB53127684A568B3173AE13B9F8A6016E243E63B6E8EE1178D6A717850B5D6103
