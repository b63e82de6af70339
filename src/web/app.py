"""
HTTP surface: a manual trigger for the digest run and a static placeholder
for every other path. Served by Hypercorn (see web/run_web.py).
"""
import asyncio
import logging

from quart import Quart

from cli.run import run_digest
from services.config import load_settings

logger = logging.getLogger(__name__)

PLACEHOLDER = "Bird Digest"

app = Quart(__name__)

# One manual run at a time per process
_run_lock = asyncio.Lock()

# Replaced in tests
digest_runner = run_digest


def manual_trigger_enabled() -> bool:
    return load_settings().ENABLE_MANUAL_TRIGGER


@app.route('/trigger', methods=['GET', 'POST'])
async def trigger():
    """Run a digest out of band when ENABLE_MANUAL_TRIGGER is set."""
    if not manual_trigger_enabled():
        return PLACEHOLDER, 200

    if _run_lock.locked():
        return 'Digest run already in progress', 409

    async with _run_lock:
        try:
            await digest_runner()
        except Exception as e:
            logger.exception(f"Manual digest run failed: {e}")
            return f"Error: {e}", 500

    return 'Digest triggered', 200


@app.route('/', defaults={'path': ''})
@app.route('/<path:path>')
async def placeholder(path: str):
    return PLACEHOLDER, 200
