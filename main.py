import argparse
import sys

import uvicorn
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from webdav_gateway.app import create_app
from webdav_gateway.core.logger.logger import configure_logging, logger
from webdav_gateway.infra.config.loader import ConfigLoader
from webdav_gateway.infra.config.settings import get_settings
from webdav_gateway.infra.config.validator import ConfigValidationError


def parse_args(argv=None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="webdav-gateway", description="WebDAV gateway server")
    parser.add_argument("-c", "--config", default=settings.CONFIG_FILE, help="path to the YAML config file")
    parser.add_argument("--address", help="listen address")
    parser.add_argument("-p", "--port", type=int, help="listen port")
    parser.add_argument("--tls", action="store_true", default=None, help="serve HTTPS")
    parser.add_argument("--cert", help="TLS certificate file")
    parser.add_argument("--key", help="TLS key file")
    parser.add_argument("--prefix", help="URL prefix of the WebDAV tree")
    parser.add_argument("-d", "--directory", help="root directory served over WebDAV")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {settings.APP_VERSION}")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    overrides = {
        "address": args.address,
        "port": args.port,
        "tls": args.tls,
        "cert": args.cert,
        "key": args.key,
        "prefix": args.prefix,
        "directory": args.directory,
    }

    try:
        config = ConfigLoader().load(args.config, overrides)
    except ConfigValidationError as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return 1

    configure_logging(config.log.level, config.log.format)
    app = create_app(config)

    server = config.server
    logger.info(
        "Starting WebDAV gateway",
        extra={"address": server.address, "port": server.port, "tls": server.tls}
    )
    uvicorn.run(
        app,
        host=server.address,
        port=server.port,
        ssl_certfile=server.cert_file if server.tls else None,
        ssl_keyfile=server.key_file if server.tls else None,
        timeout_keep_alive=int(server.idle_timeout.total_seconds()),
        timeout_graceful_shutdown=int(server.shutdown_timeout.total_seconds()),
        log_config=None
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
