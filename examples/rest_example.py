"""
BlinkTrade REST 사용 예제
공개 시세 조회와 (API Key가 있으면) 잔고/미체결 주문 조회
"""

import asyncio
import logging

from blinktrade import BlinkTradeRest, Pagination, from_satoshi
from blinktrade.api.base.exceptions import BlinkTradeError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """메인 함수"""
    # BLINKTRADE_API_KEY / BLINKTRADE_API_SECRET / BLINKTRADE_CURRENCY (.env 지원)
    async with BlinkTradeRest.from_env() as client:
        ticker, orderbook = await asyncio.gather(client.ticker(), client.orderbook())
        logger.info(f"시세: {ticker}")
        logger.info(f"호가: 매수 {len(orderbook.get('bids', []))}건 / 매도 {len(orderbook.get('asks', []))}건")

        trades = await client.trades(limit=10)
        logger.info(f"최근 체결: {len(trades)}건")

        if not client.credentials.can_trade:
            logger.info("API Key가 없어 Trade API는 건너뜀")
            return

        try:
            balance = await client.balance()
            for broker_id, wallets in balance.items():
                if isinstance(wallets, dict) and "BTC" in wallets:
                    logger.info(f"[{broker_id}] BTC: {from_satoshi(wallets['BTC'])}")

            orders = await client.my_orders(Pagination(page=0, page_size=20))
            logger.info(f"미체결 주문: {orders}")
        except BlinkTradeError as e:
            logger.error(f"Trade API 오류: {e}")


if __name__ == "__main__":
    asyncio.run(main())
