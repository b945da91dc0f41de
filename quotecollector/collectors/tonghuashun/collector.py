"""TongHuaShun (同花顺) collector."""

from __future__ import annotations

import time
from datetime import date

from quotecollector.core.exceptions import CollectorError, ProtocolError
from quotecollector.core.logging import get_logger
from quotecollector.core.models import DailyData, KLinePeriod, KLineRecord, Stock

from ..base import BaseCollector, split_ts_code
from ..deadline import Deadline, sleep_between_pages
from ..identity import Identity
from . import decoder
from .html import parse_stock_list_page

logger = get_logger(__name__)

STOCK_LIST_URL = "https://data.10jqka.com.cn/funds/ggzjl/field/zdf/order/desc/page/{page}/ajax/1/free/1/"
STOCK_LIST_REFERER = "https://data.10jqka.com.cn/funds/ggzjl/"
# K线与当日数据走 base_url (d.10jqka.com.cn)
KLINE_PATH = "/v6/line/{code}/{type}/all.js"
TODAY_PATH = "/v6/line/{code}/{type}/defer/today.js"
STOCKPAGE_REFERER = "https://stockpage.10jqka.com.cn/"

MAX_PAGES = 103
PAGE_DELAY = 1.0

# 统计脚本ID, Cookie中 Hm_lvt_*/Hm_lpvt_* 取当前时间戳
LIST_COOKIE_TEMPLATE = (
    "Hm_lvt_722143063e4892925903024537075d0d={ts}; HMACCOUNT=17C55F0F7B5ABE69; "
    "Hm_lvt_929f8b362150b1f77b477230541dbbc2={ts}; Hm_lvt_78c58f01938e4d85eaf619eae71b4ed1={ts}; "
    "Hm_lvt_69929b9dce4c22a060bd22d703b2a280={ts}; spversion=20130314; "
    "Hm_lvt_60bad21af9c824a4a0530d5dbf4357ca={ts}; Hm_lvt_f79b64788a4e377c608617fba4c736e2={ts}; "
    "historystock=600930%7C*%7C001208%7C*%7C001201%7C*%7C300111; log=; "
    "Hm_lpvt_f79b64788a4e377c608617fba4c736e2={ts}; Hm_lpvt_60bad21af9c824a4a0530d5dbf4357ca={ts}; "
    "Hm_lpvt_722143063e4892925903024537075d0d={ts}; Hm_lpvt_78c58f01938e4d85eaf619eae71b4ed1={ts}; "
    "Hm_lpvt_929f8b362150b1f77b477230541dbbc2={ts}; Hm_lpvt_69929b9dce4c22a060bd22d703b2a280={ts}; "
    "v={token}"
)
TODAY_COOKIE_TEMPLATE = (
    "Hm_lvt_722143063e4892925903024537075d0d={ts}; HMACCOUNT=17C55F0F7B5ABE69; "
    "Hm_lvt_929f8b362150b1f77b477230541dbbc2={ts}; Hm_lvt_78c58f01938e4d85eaf619eae71b4ed1={ts}; "
    "Hm_lvt_69929b9dce4c22a060bd22d703b2a280={ts}; spversion=20130314; "
    "historystock=601899%7C*%7C001208%7C*%7C600930%7C*%7C001201; "
    "Hm_lpvt_929f8b362150b1f77b477230541dbbc2={ts}; Hm_lpvt_69929b9dce4c22a060bd22d703b2a280={ts}; "
    "Hm_lpvt_722143063e4892925903024537075d0d={ts}; Hm_ck_{ck}=42; "
    "Hm_lpvt_78c58f01938e4d85eaf619eae71b4ed1={ts}; v={token}"
)


def list_cookie(timestamp: int, token: str) -> str:
    return LIST_COOKIE_TEMPLATE.format(ts=timestamp, token=token)


def today_cookie(timestamp: int, token: str) -> str:
    return TODAY_COOKIE_TEMPLATE.format(ts=timestamp, ck=timestamp - 1, token=token)


class TongHuaShunCollector(BaseCollector):
    """同花顺数据采集器: 股票列表、全部周期K线与当日快照."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_pages = MAX_PAGES
        self.page_delay = PAGE_DELAY

    def _list_headers(self, identity: Identity) -> dict[str, str]:
        token = identity.token or ""
        return {
            **identity.headers(),
            "Accept": "text/html, */*; q=0.01",
            "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
            "Priority": "u=1, i",
            "Referer": STOCK_LIST_REFERER,
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "same-origin",
            "X-Requested-With": "XMLHttpRequest",
            "Hexin-V": token,
            "Cookie": list_cookie(int(time.time()), token),
        }

    def _kline_headers(self, identity: Identity) -> dict[str, str]:
        return {**identity.headers(), "Referer": STOCKPAGE_REFERER}

    def _today_headers(self, identity: Identity) -> dict[str, str]:
        return {
            **identity.headers(),
            "Accept": "*/*",
            "Referer": STOCKPAGE_REFERER,
            "Sec-Fetch-Dest": "script",
            "Sec-Fetch-Mode": "no-cors",
            "Sec-Fetch-Site": "same-site",
            "Cookie": today_cookie(int(time.time()), identity.token or ""),
        }

    def _fetch_list_page(self, page: int, deadline: Deadline | None) -> tuple[list[Stock], bool]:
        body = self._request(
            STOCK_LIST_URL.format(page=page),
            build_headers=self._list_headers,
            refresh_token=True,
            deadline=deadline,
        )
        return parse_stock_list_page(body)

    def get_stock_list(self, *, deadline: Deadline | None = None) -> list[Stock]:
        """逐页抓取资金流向列表.

        第一页失败直接抛出; 之后的页失败则停止翻页并返回已取得的结果.
        """
        logger.info("Fetching stock list from TongHuaShun...")
        stocks: list[Stock] = []
        for page in range(1, self.max_pages + 1):
            try:
                page_stocks, has_more = self._fetch_list_page(page, deadline)
            except CollectorError as exc:
                if page == 1:
                    raise
                logger.warning(f"Stopping stock list at page {page}: {exc.message}")
                break
            stocks.extend(page_stocks)
            logger.debug(f"Fetched {len(page_stocks)} stocks from page {page}")
            if not has_more or page == self.max_pages:
                break
            if not sleep_between_pages(self.page_delay, deadline):
                logger.warning(f"Deadline reached after page {page}, returning partial stock list")
                break

        logger.info(f"Total fetched {len(stocks)} stocks from TongHuaShun")
        return stocks

    def get_kline(
        self,
        ts_code: str,
        period: KLinePeriod,
        start: date | None = None,
        end: date | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[KLineRecord]:
        period = KLinePeriod(period)
        symbol, _ = split_ts_code(ts_code)
        url = self._url(KLINE_PATH.format(code=decoder.ths_code(symbol), type=decoder.KLINE_TYPES[period]))
        body = self._request(url, build_headers=self._kline_headers, deadline=deadline)
        records = decoder.decode_kline(body, ts_code, symbol, period, start, end, self.name)
        logger.info(f"Fetched {len(records)} {period.value} klines for {ts_code} from TongHuaShun")
        return records

    def _fetch_today(self, ts_code: str, period: KLinePeriod, deadline: Deadline | None) -> tuple[KLineRecord, str]:
        symbol, _ = split_ts_code(ts_code)
        url = self._url(TODAY_PATH.format(code=decoder.ths_code(symbol), type=decoder.KLINE_TYPES[period]))
        body = self._request(url, build_headers=self._today_headers, refresh_token=True, deadline=deadline)
        return decoder.decode_today(body, ts_code, symbol, period, self.name)

    def get_today_data(self, ts_code: str, *, deadline: Deadline | None = None) -> tuple[DailyData, str]:
        """当日日线快照及股票名称."""
        record, name = self._fetch_today(ts_code, KLinePeriod.DAILY, deadline)
        if not isinstance(record, DailyData):
            raise ProtocolError(f"unexpected record type for {ts_code}", self.name)
        return record, name

    def get_current_period(
        self, ts_code: str, period: KLinePeriod, *, deadline: Deadline | None = None
    ) -> KLineRecord:
        """当前未完结周期(本周、本月...)的K线."""
        record, _ = self._fetch_today(ts_code, KLinePeriod(period), deadline)
        return record
