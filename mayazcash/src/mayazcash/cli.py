"""
mayazcash CLI - derive addresses, query the node and send transparent payments.
"""

from __future__ import annotations

import asyncio
import sys

import typer
from loguru import logger

from mayazcash.address import is_valid_address, pubkey_to_address, secret_key_to_address
from mayazcash.backends.zcashd import ZcashdBackend
from mayazcash.builder import send_to_vault
from mayazcash.config import Settings, get_settings
from mayazcash.constants import DEFAULT_EXPIRY_DELTA
from mayazcash.errors import ZcashError
from mayazcash.models import NetworkType, get_network_params
from mayazcash.signer import load_private_key

app = typer.Typer(
    name="mayazcash",
    help="Zcash transparent transaction builder",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _load_settings(network: NetworkType | None, log_level: str | None) -> Settings:
    settings = get_settings()
    if network is not None:
        settings.network = network
    setup_logging(log_level or settings.log_level)
    return settings


def _make_backend(settings: Settings) -> ZcashdBackend:
    return ZcashdBackend(
        rpc_url=settings.rpc_url,
        rpc_user=settings.rpc_user,
        rpc_password=settings.rpc_password,
        timeout=settings.rpc_timeout,
    )


@app.command()
def address(
    pubkey: str = typer.Option(None, "--pubkey", "-p", help="Compressed public key (hex)"),
    secret_key: str = typer.Option(
        None, "--secret-key", "-k", envvar="ZCASH_SECRET_KEY", help="Secret key (hex or WIF)"
    ),
    network: NetworkType = typer.Option(None, "--network", "-n"),
    log_level: str = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Derive the transparent address of a public or secret key."""
    settings = _load_settings(network, log_level)
    params = get_network_params(settings.network)

    try:
        if pubkey:
            typer.echo(pubkey_to_address(bytes.fromhex(pubkey), params.address_prefix))
        elif secret_key:
            private_key = load_private_key(secret_key, params.wif_version)
            typer.echo(secret_key_to_address(private_key, params.address_prefix))
        else:
            logger.error("Either --pubkey or --secret-key is required")
            raise typer.Exit(1)
    except (ValueError, ZcashError) as e:
        logger.error(f"Failed to derive address: {e}")
        raise typer.Exit(1)


@app.command()
def validate(
    addr: str = typer.Argument(..., help="Transparent address"),
    network: NetworkType = typer.Option(None, "--network", "-n"),
    log_level: str = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Check that an address is valid for the configured network."""
    settings = _load_settings(network, log_level)
    valid = is_valid_address(addr, get_network_params(settings.network).address_prefix)
    typer.echo("valid" if valid else "invalid")
    if not valid:
        raise typer.Exit(1)


@app.command()
def height(
    network: NetworkType = typer.Option(None, "--network", "-n"),
    log_level: str = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Show the latest block height and hash."""
    settings = _load_settings(network, log_level)
    asyncio.run(_show_height(settings))


async def _show_height(settings: Settings) -> None:
    backend = _make_backend(settings)
    try:
        tip = await backend.get_chain_tip()
        typer.echo(f"{tip.height} {tip.hash}")
    except ZcashError as e:
        logger.error(f"Failed to get chain tip: {e}")
        raise typer.Exit(1)
    finally:
        await backend.close()


@app.command()
def balance(
    addr: str = typer.Argument(..., help="Transparent address"),
    network: NetworkType = typer.Option(None, "--network", "-n"),
    log_level: str = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Show the balance of an address in zatoshis."""
    settings = _load_settings(network, log_level)
    asyncio.run(_show_balance(settings, addr))


async def _show_balance(settings: Settings, addr: str) -> None:
    backend = _make_backend(settings)
    try:
        typer.echo(str(await backend.get_balance(addr)))
    except ZcashError as e:
        logger.error(f"Failed to get balance: {e}")
        raise typer.Exit(1)
    finally:
        await backend.close()


@app.command()
def send(
    from_address: str = typer.Option(..., "--from", help="Source address"),
    to_address: str = typer.Option(..., "--to", help="Destination address"),
    amount: int = typer.Option(..., "--amount", "-a", help="Amount in zatoshis"),
    memo: str = typer.Option("", "--memo", "-m", help="OP_RETURN memo (max 80 bytes)"),
    secret_key: str = typer.Option(
        ..., "--secret-key", "-k", envvar="ZCASH_SECRET_KEY", help="Secret key (hex or WIF)"
    ),
    expiry_height: int = typer.Option(
        None,
        "--height",
        help=f"Expiry height (defaults to the current tip + {DEFAULT_EXPIRY_DELTA})",
    ),
    broadcast: bool = typer.Option(True, "--broadcast/--no-broadcast"),
    network: NetworkType = typer.Option(None, "--network", "-n"),
    log_level: str = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Build, sign and broadcast a payment."""
    settings = _load_settings(network, log_level)
    asyncio.run(
        _send(
            settings,
            from_address,
            to_address,
            amount,
            memo,
            secret_key,
            expiry_height,
            broadcast,
        )
    )


async def _send(
    settings: Settings,
    from_address: str,
    to_address: str,
    amount: int,
    memo: str,
    secret_key: str,
    expiry_height: int | None,
    broadcast: bool,
) -> None:
    backend = _make_backend(settings)
    try:
        if expiry_height is None:
            expiry_height = await backend.get_block_height() + DEFAULT_EXPIRY_DELTA

        tx = await send_to_vault(
            expiry_height,
            secret_key,
            from_address,
            to_address,
            amount,
            memo,
            backend,
            settings.network_params,
            broadcast=broadcast,
        )
        typer.echo(f"txid: {tx.txid}")
        if not broadcast:
            typer.echo(tx.hex)
    except ZcashError as e:
        logger.error(f"Payment failed: {e}")
        raise typer.Exit(1)
    finally:
        await backend.close()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
