#!/usr/bin/env python3
"""지표 인사이트 폴링 스크립트.

서버에 인사이트를 요청하고 done/error 가 될 때까지 주기적으로 재요청합니다.

사용법:
    python scripts/poll_insight.py US_10Y
    python scripts/poll_insight.py US_10Y --interval 5 --max-attempts 20
    python scripts/poll_insight.py US_10Y --base-url http://localhost:8000/api/v1
"""
import sys
import json
import asyncio
import argparse
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import get_settings
from integrations.dashboard_api import DashboardAPIClient


async def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="지표 인사이트 폴링")
    parser.add_argument("code", type=str, help="지표 코드")
    parser.add_argument("--base-url", type=str, default="http://localhost:8000/api/v1", help="API 주소")
    parser.add_argument(
        "--interval", type=float, default=settings.poll_interval_seconds, help="폴링 간격 (초)"
    )
    parser.add_argument("--max-attempts", type=int, default=None, help="최대 요청 횟수")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    client = DashboardAPIClient(base_url=args.base_url)
    try:
        result = await client.poll_indicator_insight(
            args.code, interval=args.interval, max_attempts=args.max_attempts
        )
    finally:
        await client.close()

    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    if result.get("status") != "done":
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
