"""
Run the weekly recap job without going through HTTP.

Meant for cron / a scheduled CI workflow:

    python scripts/run_weekly_recap.py                 # every companion
    python scripts/run_weekly_recap.py --companion 42  # one companion
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from agents import RecapAgent
from config.settings import settings
from core import configure_logging, get_logger
from memory.database_async import AsyncDatabase
from memory.memory_manager_async import AsyncMemoryManager
from utils.llm_client import LLMClient

logger = get_logger(__name__)


async def main(companion_id: int = None) -> int:
    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.is_production)

    db = AsyncDatabase()
    agent = RecapAgent(AsyncMemoryManager(db), LLMClient(model=settings.MODEL_RECAP))
    try:
        if companion_id is not None:
            outcome = await agent.recap_one(companion_id)
            print(outcome.model_dump_json(indent=2))
            return 0

        result = await agent.recap_all()
        print(json.dumps(result.model_dump(), indent=2))
        # Per-companion failures never abort the run, but do flag it to the scheduler
        return 1 if result.failed else 0
    finally:
        await db.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate conversation recaps")
    parser.add_argument("--companion", type=int, default=None, help="Recap a single companion ID")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.companion)))
