"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "sdk-test-matrix.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Harness configuration template for sdk-test-matrix.
# Every value is optional. Environment variables (SDK_*, GOPATH,
# GRPC_SSL_CIPHER_SUITES) override the values in this file.

network:
  # Overridden by SDK_MEMBERSRVC_ADDRESS and SDK_PEER_ADDRESS.
  membersrvc_address: "localhost:7054"
  peer_address: "localhost:7051"

tls:
  # Overridden by SDK_CA_CERT_FILE, SDK_CA_KEY_FILE and SDK_CA_CERT_HOST.
  ca_cert_file: "/var/hyperledger/production/.membersrvc/tlsca.cert"
  ca_key_file: "/var/hyperledger/production/.membersrvc/tlsca.priv"
  server_host_override: "tlsca"
  # cipher_suites: "<OPTIONAL>"

waits:
  # SDK_DEPLOYWAIT and SDK_INVOKEWAIT override both modes.
  net:
    deploy_seconds: 40
    invoke_seconds: 15
  dev:
    deploy_seconds: 10
    invoke_seconds: 5

timing:
  readiness_timeout_seconds: 15
  poll_interval_seconds: 1
  liveness_grace_seconds: 2
  tls_propagation_delay_seconds: 5
  peer_settle_seconds: 3
  mode_cooldown_seconds: 5

paths:
  # Overridden by GOPATH.
  # gopath: "<OPTIONAL>"
  # fabric_dir: "<OPTIONAL>"
  log_dir: "/tmp/node-sdk-unit-test"
  node_executable: "node"
  go_executable: "go"

keystore:
  # Overridden by SDK_KEYSTORE_PERSIST and SDK_KEYSTORE.
  persist: false
  # directory: "<OPTIONAL>"
  purge_patterns:
    - "/var/hyperledger/production"
    - "/tmp/*keyValStore*"

credentials:
  # Overridden by SDK_DEFAULT_USER and SDK_DEFAULT_SECRET.
  # default_user: "<OPTIONAL>"
  # default_secret: "<OPTIONAL>"

chaincode:
  # Overridden by SDK_CHAINCODE_PATH and SDK_CHAINCODE_ID.
  # path: "<OPTIONAL>"
  # id: "<OPTIONAL>"

matrix:
  # SDK_TLS=0 or SDK_TLS=1 restricts the run to one TLS setting.
  tls: [false, true]
  modes: [net, dev]
"""


def build_placeholder_configuration() -> str:
    """Build a YAML harness configuration template with inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the harness configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
