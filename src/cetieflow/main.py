"""Command line entry point."""
import argparse
import sys
from pathlib import Path
from typing import Optional

from cetieflow.config.manager import Config, ConfigManager
from cetieflow.config.settings import AppSettings, get_settings
from cetieflow.core.documents import DocumentOpener
from cetieflow.core.identifier import validate_identifier
from cetieflow.core.locator import FolderLocator
from cetieflow.core.photos import PhotoManager
from cetieflow.core.session import DocumentSession, FolderBrowser
from cetieflow.core.templates import TemplateCatalog
from cetieflow.core.validation import ValidationStore
from cetieflow.graph.client import GraphClient
from cetieflow.orchestrator.finalizer import FinalizeOrchestrator
from cetieflow.shell import AffaireShell, Services, describe_error
from cetieflow.utils.auth import CredentialProvider
from cetieflow.utils.exceptions import AuthCancelledError, CetieFlowError
from cetieflow.utils.logger import configure_logging, get_logger, set_affaire_context
from cetieflow.utils.notifier import ConsoleNotifier, Notifier
from cetieflow.utils.paths import get_app_dir

logger = get_logger()


def _load_and_validate_config(settings: AppSettings) -> Config:
    """Load and validate configuration; stop before any remote call when unusable."""
    config_manager = ConfigManager(file_name=settings.config_file)
    config = config_manager.load_config()

    if not config:
        logger.critical("No configuration found. Run 'cetieflow configure' first.")
        sys.exit(1)

    is_valid, message = config_manager.validate_config(config)
    if not is_valid:
        logger.critical(f"Invalid configuration: {message}")
        sys.exit(1)

    configure_logging(config.log_level, settings.log_max_file_size_mb, settings.log_backup_count)
    logger.info("Configuration loaded successfully")
    return config


def _scratch_dir(config: Config, settings: AppSettings) -> Path:
    return Path(config.scratch_dir) if config.scratch_dir else get_app_dir() / settings.scratch_dir


def build_credentials(config: Config, settings: AppSettings) -> CredentialProvider:
    cache_path = Path(config.token_cache_path) if config.token_cache_path else get_app_dir() / settings.token_cache_file
    return CredentialProvider(
        client_id=config.client_id,
        authority=settings.authority_for(config.tenant_id),
        scopes=settings.scopes,
        cache_path=cache_path
    )


def build_services(config: Config, settings: AppSettings, notifier: Notifier) -> Services:
    """Wire the Graph client and every affaire service around one token provider."""
    graph = GraphClient(
        token_provider=build_credentials(config, settings),
        base_url=settings.graph_base_url,
        timeout=settings.graph_timeout_seconds
    )
    scratch_dir = _scratch_dir(config, settings)
    browser = FolderBrowser(graph, settings)
    templates = TemplateCatalog(graph, settings, browser, notifier)
    return Services(
        graph=graph,
        notifier=notifier,
        browser=browser,
        locator=FolderLocator(graph, settings),
        photos=PhotoManager(graph, settings, browser, notifier, scratch_dir),
        validation=ValidationStore(graph, settings),
        templates=templates,
        documents=DocumentOpener(graph, settings, browser, templates, notifier, scratch_dir),
        finalizer=FinalizeOrchestrator(graph, settings, browser, notifier)
    )


def open_session(services: Services, raw_identifier: str, scanned: bool = False) -> DocumentSession:
    """Validate, locate and load an affaire: photos first, then validation.json."""
    identifier = validate_identifier(raw_identifier, scanned)
    services.notifier.info("Chargement...")
    located = services.locator.locate(identifier)
    set_affaire_context(identifier)

    session = DocumentSession.from_located(located)
    services.photos.refresh(session)
    services.validation.load(session)
    return session


def configure_command(settings: AppSettings, client_id: Optional[str], tenant_id: Optional[str]) -> None:
    """Create or update the user configuration."""
    config_manager = ConfigManager(file_name=settings.config_file)
    current = config_manager.load_config()

    client_id = client_id or input(f"Application (client) ID [{current.client_id if current else ''}]: ").strip()
    tenant_id = tenant_id or input(f"Tenant ID [{current.tenant_id if current else ''}]: ").strip()
    config = Config(
        client_id=client_id or (current.client_id if current else ""),
        tenant_id=tenant_id or (current.tenant_id if current else ""),
        log_level=current.log_level if current else settings.log_level
    )

    is_valid, message = config_manager.validate_config(config)
    if not is_valid:
        print(f"✗ {message}")
        sys.exit(1)

    config_manager.save_config(config)
    print(f"✓ Configuration saved to {config_manager.config_file}")


def login_command(config: Config, settings: AppSettings) -> None:
    credentials = build_credentials(config, settings)
    credentials.get_token()
    account = credentials.get_current_account()
    print(f"✓ Connecté : {account.get('username') if account else 'compte inconnu'}")


def logout_command(config: Config, settings: AppSettings) -> None:
    build_credentials(config, settings).sign_out()
    print("✓ Déconnecté")


def locate_command(services: Services, raw_identifier: str, scanned: bool) -> None:
    identifier = validate_identifier(raw_identifier, scanned)
    located = services.locator.locate(identifier)
    print(f"✓ {located.folder_name}")
    print(f"  Client : {located.client_name}")


def session_command(services: Services, raw_identifier: str, scanned: bool) -> None:
    """Open affaires one after another; leaving a shell returns to the number prompt."""
    while raw_identifier:
        try:
            session = open_session(services, raw_identifier, scanned)
        except CetieFlowError as e:
            logger.error(f"Cannot open {raw_identifier}: {e}")
            services.notifier.error(describe_error(e))
        else:
            AffaireShell(services, session).cmdloop()
        raw_identifier = input("Numéro d'affaire (vide pour quitter) : ").strip()
        scanned = False


def main():
    """Main entry point for CetieFlow."""
    parser = argparse.ArgumentParser(description="CetieFlow affaire folder tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    configure_parser = subparsers.add_parser("configure", help="Set the Azure AD application and tenant")
    configure_parser.add_argument("--client-id", help="Application (client) ID")
    configure_parser.add_argument("--tenant-id", help="Directory (tenant) ID")

    subparsers.add_parser("login", help="Sign in to Microsoft 365")
    subparsers.add_parser("logout", help="Forget the cached account")

    for name, help_text in (("locate", "Find an affaire folder"), ("session", "Open an affaire folder")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("identifier", help="8-character affaire number")
        sub.add_argument("--scan", action="store_true", help="Identifier comes from a CODE_39 scan")

    args = parser.parse_args()

    settings = get_settings()
    notifier = ConsoleNotifier()

    if args.command == "configure":
        configure_command(settings, args.client_id, args.tenant_id)
        return

    config = _load_and_validate_config(settings)
    logger.info(f"{settings.app_name} {settings.app_version}: {args.command}")

    try:
        if args.command == "login":
            login_command(config, settings)
        elif args.command == "logout":
            logout_command(config, settings)
        else:
            services = build_services(config, settings, notifier)
            if args.command == "locate":
                locate_command(services, args.identifier, args.scan)
            else:
                session_command(services, args.identifier, args.scan)
    except AuthCancelledError:
        notifier.error("Connexion annulée")
        sys.exit(1)
    except CetieFlowError as e:
        logger.error(f"{args.command} failed: {e}")
        notifier.error(describe_error(e))
        sys.exit(1)
    except (KeyboardInterrupt, EOFError):
        logger.info("Received keyboard interrupt")


if __name__ == "__main__":
    main()
