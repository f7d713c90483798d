"""
BlinkTrade WebSocket 사용 예제
로그인 후 실시간 시세/호가 구독과 체결 보고 수신
"""

import asyncio
import logging
import os

from dotenv import load_dotenv

from blinktrade import BlinkTradeWS, SecondFactorRequired

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class WebSocketExample:
    """WebSocket 사용 예제"""

    def __init__(self):
        load_dotenv()
        self.client = BlinkTradeWS(
            prod=os.getenv("BLINKTRADE_PROD", "0") == "1",
            broker_id=int(os.getenv("BLINKTRADE_BROKER_ID", "11"))
        )
        self.received_data_count = 0

    def on_ticker(self, data: dict):
        """실시간 시세 수신 콜백"""
        self.received_data_count += 1
        logger.info(f"[시세] {data.get('symbol')} | 최종가: {data.get('last')} | 거래량: {data.get('vol')}")

    def on_orderbook(self, data: dict):
        """실시간 호가 수신 콜백"""
        self.received_data_count += 1
        bids = data.get("bids") or []
        asks = data.get("asks") or []
        best_bid = bids[0][0] if bids else None
        best_ask = asks[0][0] if asks else None
        logger.info(f"[호가] {data.get('symbol')} | 매수: {best_bid} | 매도: {best_ask}")

    def on_execution_report(self, data: dict):
        """체결 보고 수신 콜백"""
        logger.info(f"[체결 보고] order={data.get('order_id')} exec_type={data.get('exec_type')}")

    async def login(self):
        username = os.getenv("BLINKTRADE_USERNAME", "")
        password = os.getenv("BLINKTRADE_PASSWORD", "")
        try:
            await self.client.login(username=username, password=password)
        except SecondFactorRequired:
            # 2차 인증값을 채워 다시 시도
            await self.client.login(
                username=username,
                password=password,
                second_factor=os.getenv("BLINKTRADE_SECOND_FACTOR")
            )
        logger.info(f"로그인 완료: {self.client.profile_data}")

    async def run_example(self):
        """예제 실행"""
        try:
            await self.client.connect()
            logger.info("WebSocket 연결됨")

            heartbeat = await self.client.heartbeat()
            logger.info(f"지연 시간: {heartbeat['latency_ms']}ms")

            await self.login()

            # 잔고 및 체결 보고
            balance = await self.client.balance()
            logger.info(f"잔고: {balance}")
            self.client.execution_report(self.on_execution_report)

            # 관심 심볼 구독
            symbols = ["BTCUSD", "BTCBRL"]
            ticker = self.client.subscribe_ticker(symbols, callback=self.on_ticker)
            orderbook = self.client.subscribe_orderbook(symbols, callback=self.on_orderbook)
            await ticker
            await orderbook
            logger.info(f"현재 구독 수: {len(self.client.get_subscriptions())}")

            # 실시간 데이터 수신 (30초간)
            logger.info("실시간 데이터 수신 시작... (30초간)")
            await asyncio.sleep(30)
            logger.info(f"총 수신 데이터: {self.received_data_count}건")

            # 구독 해제
            self.client.unsubscribe_ticker(ticker.req_id)
            self.client.unsubscribe_orderbook(orderbook.req_id)
            logger.info("모든 구독 해제 완료")

            await self.client.logout()

        finally:
            await self.client.disconnect()
            logger.info("WebSocket 연결 해제됨")


async def main():
    """메인 함수"""
    example = WebSocketExample()

    try:
        await example.run_example()
    except KeyboardInterrupt:
        logger.info("사용자에 의해 중단됨")
    except Exception as e:
        logger.error(f"예제 실행 중 오류: {e}")
    finally:
        logger.info("예제 종료")


if __name__ == "__main__":
    asyncio.run(main())
