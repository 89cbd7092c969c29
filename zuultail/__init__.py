"""zuultail — a client library to follow Zuul CI build results."""

from zuultail.client.builds import ZuulClient, create_client, parse_root_url
from zuultail.core.models import Artifact, Build

__all__ = ["Artifact", "Build", "ZuulClient", "create_client", "parse_root_url"]

__version__ = "0.1.0"
