"""
Command-line client: share your facts, receive a scanned link, poll reciprocal exchanges.
Run: python -m cli --help (from repo root, with .env or env vars set).
"""

import asyncio
import logging
import os
from pathlib import Path

import typer
from dotenv import load_dotenv

from factswap.application import (
    OVERFLOW_HINT,
    ContactMerger,
    ExchangePoller,
    ExchangesApplied,
    RemoteServiceError,
    ShareError,
    ShareService,
)
from factswap.application.exchange_poller import DEFAULT_POLL_INTERVAL
from factswap.domain import PrivacyLevel, requires_privacy_notice
from factswap.infrastructure import (
    JsonContactStore,
    ShareApiClient,
    get_or_create_profile_id,
    load_share_profile,
)

_REPO_ROOT = Path(__file__).resolve().parent.parent.parent
for path in (_REPO_ROOT / ".env", Path.cwd() / ".env"):
    if path.exists():
        load_dotenv(path)
        break

logger = logging.getLogger(__name__)

app = typer.Typer(help="Exchange facts by QR link and keep contacts in sync.")


def _home() -> Path:
    raw = os.environ.get("FACTSWAP_HOME", "").strip()
    return Path(raw).expanduser() if raw else Path.home() / ".factswap"


def _api_url() -> str:
    return os.environ.get("FACTSWAP_API_URL", "http://localhost:8010").strip().rstrip("/")


def _origin() -> str:
    return os.environ.get("FACTSWAP_PUBLIC_ORIGIN", "").strip().rstrip("/") or _api_url()


def _phone_region() -> str | None:
    return os.environ.get("FACTSWAP_PHONE_REGION", "").strip().upper() or None


def _full_privacy() -> bool:
    return os.environ.get("FACTSWAP_FULL_PRIVACY", "1").strip().lower() not in ("0", "false", "no", "off")


def _profile():
    home = _home()
    profile_id, _ = get_or_create_profile_id(home / "state.json")
    return load_share_profile(home / "profile.json", profile_id, default_region=_phone_region())


def _contact_store() -> JsonContactStore:
    return JsonContactStore(_home() / "contacts.json")


def _merger() -> ContactMerger:
    return ContactMerger(_contact_store())


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging.")) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )


@app.command()
def share(
    privacy: PrivacyLevel | None = typer.Option(None, help="Overrides the level saved in profile.json."),
    group: list[str] | None = typer.Option(None, "--group", "-g", help="Group id to share; repeatable."),
    alias: bool = typer.Option(False, help="Always use a short link."),
) -> None:
    """Print the share link for your profile."""
    profile = _profile()

    async def _run():
        async with ShareApiClient(_api_url()) as api:
            service = ShareService(_merger(), api, origin=_origin(), allow_full_privacy=_full_privacy())
            payload = service.build_payload(
                profile.owner,
                profile.groups,
                privacy or profile.privacy or PrivacyLevel.PUBLIC,
                selected_group_ids=group or None,
            )
            return await service.render_link(payload, prefer_alias=alias)

    link = asyncio.run(_run())
    typer.echo(link.url)
    typer.echo(f"{link.capacity.length}/{link.capacity.limit} characters", err=True)
    if link.overflow:
        typer.secho(OVERFLOW_HINT, fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=2)


@app.command()
def receive(
    link: str = typer.Argument(..., help="Scanned or pasted share link, token or alias."),
    reciprocal: bool = typer.Option(True, help="Send your own facts back to the sender."),
) -> None:
    """Add the sender of a share link to your contacts."""
    profile = _profile()

    async def _run():
        async with ShareApiClient(_api_url()) as api:
            service = ShareService(_merger(), api, origin=_origin(), allow_full_privacy=_full_privacy())
            back = None
            if reciprocal and profile.groups:
                back = service.build_payload(
                    profile.owner, profile.groups, profile.privacy or PrivacyLevel.PUBLIC
                )
            return await service.receive(link, reciprocal=back)

    try:
        received = asyncio.run(_run())
    except ShareError as e:
        typer.secho(e.message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    merge = received.merge
    verb = "Added" if merge.was_created else "Updated"
    typer.echo(f"{verb} {merge.contact.name}: {merge.added_facts} new fact(s).")
    if requires_privacy_notice(received.payload.privacy):
        typer.secho(
            f"Shared with privacy level '{received.payload.privacy.value}'; do not pass these facts on.",
            fg=typer.colors.YELLOW,
        )
    if received.reciprocal_error:
        typer.secho(f"Could not send your facts back: {received.reciprocal_error}", fg=typer.colors.YELLOW, err=True)


@app.command()
def poll(
    once: bool = typer.Option(False, help="Poll a single time and exit."),
    interval: float = typer.Option(
        float(os.environ.get("FACTSWAP_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)),
        help="Seconds between polls.",
    ),
) -> None:
    """Merge facts that people sent back after scanning your code."""
    profile = _profile()
    merger = _merger()

    def _report(event: ExchangesApplied) -> None:
        typer.echo(f"Merged {len(event.contact_ids)} exchange(s), {event.added_facts} new fact(s).")

    merger.events.exchanges_applied.subscribe(_report)

    async def _run():
        async with ShareApiClient(_api_url()) as api:
            poller = ExchangePoller(api, merger, profile.owner.id, interval=interval)
            if once:
                await poller.poll_once()
                return
            handle = poller.start()
            try:
                await handle.wait_closed()
            finally:
                await handle.close()

    try:
        asyncio.run(_run())
    except RemoteServiceError as e:
        typer.secho(e.message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        pass


@app.command()
def contacts() -> None:
    """List saved contacts."""
    for contact in _contact_store().load():
        channels = ", ".join(c for c in (contact.phone, contact.telegram, contact.instagram) if c)
        line = f"{contact.name} ({contact.fact_count()} facts)"
        typer.echo(f"{line} - {channels}" if channels else line)
