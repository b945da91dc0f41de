"""EastMoney (东方财富) collector."""

from __future__ import annotations

import time
from datetime import date

from quotecollector.core.exceptions import NotSupportedError
from quotecollector.core.logging import get_logger
from quotecollector.core.models import DailyData, KLinePeriod, KLineRecord, PerformanceReport, ShareholderCount, Stock, date_to_int

from ..base import BaseCollector, split_ts_code
from ..deadline import Deadline, sleep_between_pages
from ..identity import Identity
from ..kline_parser import KLineParser
from . import decoder

logger = get_logger(__name__)

# 列表与详情走 base_url (push2), K线与数据中心各有独立域名
STOCK_LIST_PATH = "/api/qt/clist/get"
STOCK_DETAIL_PATH = "/api/qt/stock/get"
KLINE_URL = "https://push2his.eastmoney.com/api/qt/stock/kline/get"
DATACENTER_URL = "https://datacenter-web.eastmoney.com/api/data/v1/get"
DATACENTER_REFERER = "https://data.eastmoney.com/bbsj/yjbb/"

PAGE_SIZE = 50
PAGE_DELAY = 0.1

LIST_FILTER = "m:0+t:6+f:!2,m:0+t:13+f:!2,m:0+t:80+f:!2,m:1+t:2+f:!2,m:1+t:23+f:!2,m:0+t:7+f:!2,m:1+t:3+f:!2"
LIST_FIELDS = "f12,f14,f2,f3,f62,f184,f66,f69,f72,f75,f78,f81,f84,f87,f204,f205,f124,f1,f13"
DETAIL_FIELDS = "f57,f58,f107,f43,f169,f170,f171,f47,f48,f60,f46,f44,f45,f168,f50,f162,f177,f803"
SHAREHOLDER_COLUMNS = (
    "SECURITY_CODE,SECURITY_NAME_ABBR,CHANGE_SHARES,CHANGE_REASON,END_DATE,INTERVAL_CHRATE,"
    "AVG_MARKET_CAP,AVG_HOLD_NUM,TOTAL_MARKET_CAP,TOTAL_A_SHARES,HOLD_NOTICE_DATE,HOLDER_NUM,"
    "PRE_HOLDER_NUM,HOLDER_NUM_CHANGE,HOLDER_NUM_RATIO,END_DATE,PRE_END_DATE"
)

# K线周期 -> klt 参数
KLINE_TYPES = {
    KLinePeriod.DAILY: "101",
    KLinePeriod.WEEKLY: "102",
    KLinePeriod.MONTHLY: "103",
    KLinePeriod.YEARLY: "104",
}

MARKET_IDS = {"SH": "1", "SZ": "0"}


def _millis() -> int:
    return int(time.time() * 1000)


def build_secid(ts_code: str) -> str:
    """``600000.SH`` -> ``1.600000``."""
    symbol, market = split_ts_code(ts_code)
    return f"{MARKET_IDS[market]}.{symbol}"


class EastMoneyCollector(BaseCollector):
    """东方财富数据采集器: 股票列表、详情、K线、实时行情、业绩报表与股东户数."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.parser = KLineParser(self.name)
        self.page_size = PAGE_SIZE
        self.page_delay = PAGE_DELAY

    def _fetch_list_page(self, page: int, page_size: int, deadline: Deadline | None) -> list[dict]:
        params = {
            "cb": f"jQuery112303251051388385584_{_millis()}",
            "fid": "f62",
            "po": "1",
            "pz": str(page_size),
            "pn": str(page),
            "np": "1",
            "fltt": "2",
            "invt": "2",
            "ut": "8dec03ba335b81bf4ebdf7b29ec27d15",
            "fs": LIST_FILTER,
            "fields": LIST_FIELDS,
        }
        body = self._request(self._url(STOCK_LIST_PATH), params, deadline=deadline)
        payload = decoder.decode_envelope(body, self.name)
        rows = decoder.list_rows(payload, self.name, body)
        if page == 1:
            total = (payload.get("data") or {}).get("total")
            logger.info(f"API reports total stocks: {total}")
        return rows

    def get_stock_list(self, *, deadline: Deadline | None = None) -> list[Stock]:
        logger.info("Fetching stock list from EastMoney...")
        stocks: list[Stock] = []
        page = 1
        while True:
            rows = self._fetch_list_page(page, self.page_size, deadline)
            if not rows:
                break
            for row in rows:
                stock = decoder.row_to_stock(row)
                if stock is not None:
                    stocks.append(stock)
            logger.debug(f"Fetched {len(rows)} stocks from page {page}")
            if len(rows) < self.page_size:
                break
            page += 1
            sleep_between_pages(self.page_delay, deadline)

        logger.info(f"Total fetched {len(stocks)} stocks from EastMoney")
        return stocks

    def get_stock_detail(self, ts_code: str, *, deadline: Deadline | None = None) -> Stock:
        logger.info(f"Fetching stock detail for {ts_code} from EastMoney")
        params = {
            "ut": "b2884a393a59ad64002292a3e90d46a5",
            "invt": "2",
            "fltt": "2",
            "cb": f"jQuery112309283015113892927_{_millis()}",
            "secid": build_secid(ts_code),
            "fields": DETAIL_FIELDS,
        }
        body = self._request(self._url(STOCK_DETAIL_PATH), params, deadline=deadline)
        return decoder.decode_stock_detail(body, ts_code, self.name)

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
        klt = KLINE_TYPES.get(period)
        if klt is None:
            raise NotSupportedError(f"get_kline[{period.value}]", self.name)
        params = {
            "fields1": "f1,f2,f3,f4,f5,f6,f7,f8,f9,f10,f11,f12,f13",
            "fields2": "f51,f52,f53,f54,f55,f56,f57,f58,f59,f60,f61",
            "beg": "0",
            "end": "20500101",
            "ut": "fa5fd1943c7b386f172d6893dbfba10b",
            "rtntype": "6",
            "secid": build_secid(ts_code),
            "klt": klt,
            "fqt": "1",
            "cb": f"jsonp{_millis()}",
        }
        body = self._request(KLINE_URL, params, deadline=deadline)
        records = decoder.decode_kline(body, ts_code, period, start, end, self.parser, self.name)
        logger.info(f"Fetched {len(records)} {period.value} klines for {ts_code} from EastMoney")
        return records

    def get_realtime_data(self, ts_codes: list[str], *, deadline: Deadline | None = None) -> list[DailyData]:
        """实时行情取自资金流向列表首页, 只包含首页出现的股票."""
        logger.info(f"Fetching realtime data for {len(ts_codes)} stocks from EastMoney")
        wanted = set(ts_codes)
        today = date_to_int(date.today())
        results: list[DailyData] = []
        for row in self._fetch_list_page(1, PAGE_SIZE, deadline):
            record = decoder.row_to_realtime(row, today)
            if record is None or (wanted and record.ts_code not in wanted):
                continue
            results.append(record)
        logger.info(f"Fetched realtime data for {len(results)} stocks")
        return results

    def _datacenter_headers(self, identity: Identity) -> dict[str, str]:
        headers = self._default_headers(identity)
        headers["Referer"] = DATACENTER_REFERER
        return headers

    def _fetch_datacenter(self, params: dict[str, str], deadline: Deadline | None) -> list[dict]:
        body = self._request(DATACENTER_URL, params, build_headers=self._datacenter_headers, deadline=deadline)
        return decoder.decode_datacenter(body, self.name)

    def get_performance_reports(self, ts_code: str, *, deadline: Deadline | None = None) -> list[PerformanceReport]:
        symbol, _ = split_ts_code(ts_code)
        logger.info(f"Fetching performance reports for {ts_code} from EastMoney")
        params = {
            "callback": f"jQuery112305975330320237164_{_millis()}",
            "sortColumns": "REPORTDATE",
            "sortTypes": "-1",
            "pageSize": "50",
            "pageNumber": "1",
            "columns": "ALL",
            "filter": f'(SECURITY_CODE="{symbol}")',
            "reportName": "RPT_LICO_FN_CPD",
        }
        rows = self._fetch_datacenter(params, deadline)
        return decoder.convert_rows(ts_code, rows, decoder.to_performance_report, "performance report")

    def get_shareholder_counts(self, ts_code: str, *, deadline: Deadline | None = None) -> list[ShareholderCount]:
        symbol, _ = split_ts_code(ts_code)
        logger.info(f"Fetching shareholder counts for {ts_code} from EastMoney")
        params = {
            "callback": f"jQuery1123014159649525581786_{_millis()}",
            "sortColumns": "END_DATE",
            "sortTypes": "-1",
            "pageSize": "50",
            "pageNumber": "1",
            "reportName": "RPT_HOLDERNUM_DET",
            "columns": SHAREHOLDER_COLUMNS,
            "quoteColumns": "f2,f3",
            "quoteType": "0",
            "source": "WEB",
            "client": "WEB",
            "filter": f'(SECURITY_CODE="{symbol}")',
        }
        rows = self._fetch_datacenter(params, deadline)
        return decoder.convert_rows(ts_code, rows, decoder.to_shareholder_count, "shareholder count")
