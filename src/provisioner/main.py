"""Application entrypoint: the HTTP service or a single provisioning run."""

from __future__ import annotations

import argparse
import asyncio

import structlog
import uvicorn

from provisioner.api.app import create_app
from provisioner.api.dependencies.services import ServiceContainer
from provisioner.config import get_settings, Settings
from provisioner.domain.errors import ProvisioningError
from provisioner.domain.models.provisioning import ProvisioningRequest
from provisioner.infrastructure.observability.logging import setup_logging


logger = structlog.get_logger(__name__)

app = create_app()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="dao-provisioner")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("serve", help="run the HTTP service (default)")
    provision = commands.add_parser(
        "provision", help="provision one DAO and print its address"
    )
    provision.add_argument("--rpc-url", default=None)
    provision.add_argument("--dao-name", default=None)
    return parser.parse_args(argv)


def serve(settings: Settings) -> None:
    uvicorn.run(
        "provisioner.main:app",
        host=settings.host,
        port=settings.port,
        workers=settings.workers,
        reload=settings.debug,
        log_level=settings.observability.log_level.lower(),
    )


async def provision_once(
    settings: Settings, rpc_url: str | None, dao_name: str | None
) -> str:
    """Run the pipeline against the configured stores and return the DAO address."""
    container = ServiceContainer(settings)
    await container.startup()
    try:
        result = await container.provisioning_service.run(ProvisioningRequest(
            admin_signing_key=settings.chain.admin_private_key,
            rpc_endpoint=rpc_url or settings.chain.rpc_url,
            dao_name=dao_name,
        ))
    finally:
        await container.shutdown()
    return result.dao_address


def provision(settings: Settings, rpc_url: str | None, dao_name: str | None) -> int:
    if not settings.chain.admin_private_key:
        logger.error("admin_key_missing", env="CHAIN_ADMIN_PRIVATE_KEY")
        return 2
    try:
        dao_address = asyncio.run(provision_once(settings, rpc_url, dao_name))
    except ProvisioningError as e:
        logger.error("provisioning_aborted", stage=e.stage, error=str(e))
        return 1
    print(dao_address)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the application."""
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings.observability.log_level, json_output=not settings.debug)

    if args.command == "provision":
        return provision(settings, args.rpc_url, args.dao_name)
    serve(settings)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
