# paginated, searchable city collection on top of the city directory client
# every fetch is keyed by a ListingRequest; only the newest request may change the collection

from __future__ import annotations
import logging
import threading
from concurrent.futures import Executor, Future
from typing import List, Optional

from .client import CityDirectoryClient
from .errors import ListingUnavailable
from .models import CityRecord, ListingRequest, ListingResult
from .service import parse_city_records, sort_by_country

logger = logging.getLogger(__name__)


class ListingProvider:
    def __init__(self, client: CityDirectoryClient, page_size: int = 20):
        if page_size < 1:
            raise ValueError(f"page_size must be positive (got {page_size})")
        self.client = client
        self.page_size = page_size

        self._lock = threading.Lock()
        self._sequence = 0
        self._latest: Optional[ListingRequest] = None
        self._cities: List[CityRecord] = []
        self._has_more = True
        self._query = ""
        self._page_offset = 0
        self._settled = 0  # sequence of the last request that finished, applied or failed
        self.failed = False

    @property
    def cities(self) -> List[CityRecord]:
        with self._lock:
            return list(self._cities)

    @property
    def has_more(self) -> bool:
        with self._lock:
            return self._has_more

    def snapshot(self, applied: bool = True, request: Optional[ListingRequest] = None) -> ListingResult:
        with self._lock:
            return ListingResult(
                cities=tuple(self._cities),
                has_more=self._has_more,
                applied=applied,
                request=request,
            )

    def begin(self, query: str, page_offset: int = 0) -> ListingRequest:
        # issuing a request makes every earlier one stale
        if page_offset < 0:
            raise ValueError(f"page_offset must not be negative (got {page_offset})")
        with self._lock:
            return self._issue(query, page_offset)

    def _issue(self, query: str, page_offset: int) -> ListingRequest:
        # caller holds the lock
        self._sequence += 1
        request = ListingRequest(query=query.strip(), page_offset=page_offset, sequence=self._sequence)
        self._latest = request
        return request

    def fetch(self, request: ListingRequest) -> List[CityRecord]:
        # network + parsing only, does not touch the collection
        try:
            payload = self.client.search(
                request.query,
                start=request.page_offset * self.page_size,
                rows=self.page_size,
            )
        except ListingUnavailable:
            with self._lock:
                # a stale failure says nothing about the current collection
                if self._latest == request:
                    self.failed = True
                    self._settled = request.sequence
            logger.error("City listing fetch failed for %r page %d", request.query, request.page_offset)
            raise
        return sort_by_country(parse_city_records(payload))

    def apply(self, request: ListingRequest, page: List[CityRecord]) -> bool:
        with self._lock:
            if self._latest != request:
                logger.warning(
                    "Discarding stale city listing response #%d (latest is #%d)",
                    request.sequence,
                    self._latest.sequence if self._latest else 0,
                )
                return False

            if request.query:
                # searching replaces the list and turns off incremental loading
                self._cities = list(page)
                self._has_more = False
            else:
                if request.page_offset == 0:
                    self._cities = list(page)
                else:
                    self._cities.extend(page)
                # heuristic: an empty page means we reached the end
                self._has_more = len(page) > 0

            self._query = request.query
            self._page_offset = request.page_offset
            self._settled = request.sequence
            self.failed = False
            total = len(self._cities)
        logger.debug("Applied city listing #%d: %d new, %d total", request.sequence, len(page), total)
        return True

    def _run(self, request: ListingRequest) -> ListingResult:
        page = self.fetch(request)
        applied = self.apply(request, page)
        return self.snapshot(applied=applied, request=request)

    def search(self, query: str, page_offset: int = 0) -> ListingResult:
        return self._run(self.begin(query, page_offset))

    def submit(self, executor: Executor, query: str, page_offset: int = 0) -> "Future[ListingResult]":
        # the request is keyed now, on the caller's thread, so ordering follows submission order
        request = self.begin(query, page_offset)
        return executor.submit(self._run, request)

    def load_more(self) -> ListingResult:
        # next page for the unfiltered listing; replaces the scroll trigger
        # at most one page request in flight, like a scroll handler ignoring events while loading
        with self._lock:
            busy = self._latest is not None and self._latest.sequence != self._settled
            if self._query or not self._has_more or busy:
                request = None
            else:
                request = self._issue("", self._page_offset + 1)
        if request is None:
            return self.snapshot(applied=False)
        return self._run(request)
