"""
Wires configured services into a DigestAssembler.
"""
import logging
from datetime import timedelta

from delivery.base import Mailer
from delivery.email_delivery import SmtpMailer
from delivery.file_delivery import FileMailer
from delivery.resend_delivery import ResendMailer
from ingestion.twitter import TwitterClient
from processing.summarizer import Summarizer
from services.config import Config, Settings
from services.database import Database, KeyValueStore, MemoryStore
from services.digest_tracker import DigestTracker
from services.llm import LLMClient
from workflows.digest import DigestAssembler

logger = logging.getLogger(__name__)


def create_mailer(settings: Settings, *, dry_run: bool = False) -> Mailer:
    """Create the mail transport selected by EMAIL_PROVIDER (file for dry runs)."""
    provider = "file" if dry_run else settings.EMAIL_PROVIDER

    if provider == "resend":
        return ResendMailer(api_key=settings.RESEND_API_KEY, sender=settings.EMAIL_FROM)

    elif provider == "smtp":
        return SmtpMailer(
            smtp_host=settings.EMAIL_SMTP_HOST,
            smtp_port=settings.EMAIL_SMTP_PORT,
            username=settings.EMAIL_USERNAME,
            password=settings.EMAIL_PASSWORD,
            sender=settings.EMAIL_FROM,
        )

    elif provider == "file":
        return FileMailer(output_dir=settings.OUTPUT_DIR)

    else:
        raise ValueError(f"Unknown email provider: {provider}")


def create_store(settings: Settings, *, dry_run: bool = False) -> KeyValueStore:
    if dry_run:
        return MemoryStore()
    return Database(settings.DATABASE_PATH)


def create_assembler(config: Config, settings: Settings, *, dry_run: bool = False) -> DigestAssembler:
    """
    Build every collaborator for a run. Secrets must already be checked
    (Settings.require_secrets) so nothing here fails half-way.
    """
    llm = LLMClient.from_config(
        config.llm.provider,
        config.llm.model,
        api_key=settings.llm_api_key(config.llm.provider),
        base_url=settings.OLLAMA_BASE_URL,
    )

    social = TwitterClient(
        auth_token=settings.TWITTER_AUTH_TOKEN,
        ct0=settings.TWITTER_CT0,
    )

    mailer = create_mailer(settings, dry_run=dry_run)
    tracker = DigestTracker(create_store(settings, dry_run=dry_run))

    logger.info(
        f"Created digest assembler (llm={config.llm.provider}/{config.llm.model}, "
        f"mailer={mailer.name}, dry_run={dry_run})"
    )

    return DigestAssembler(
        config,
        social=social,
        summarizer=Summarizer(llm, prompt_template=config.prompt),
        mailer=mailer,
        tracker=tracker,
        fetch_limit=settings.FETCH_LIMIT,
        recency=timedelta(hours=settings.RECENCY_HOURS),
    )
