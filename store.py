import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterator, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

import config
from codegen import candidate_codes
from errors import CodeCollisionError, StorageError, UnknownCodeError
from models import UrlMapping
from schemas import MappingInfo

logger = logging.getLogger("url_shortener.store")


class URLStore(ABC):
    """Short code -> URL mappings with hit counting.

    ``dedupe`` selects the code policy: when set, a URL that is already stored
    gets its existing code back; otherwise every call to :meth:`set` creates a
    new mapping with a time-salted code.
    """

    def __init__(self, dedupe: bool = True, code_length: int = config.CODE_LENGTH,
                 max_attempts: int = config.MAX_CODE_ATTEMPTS):
        self.dedupe = dedupe
        self.code_length = code_length
        self.max_attempts = max_attempts

    def _candidates(self, long_url: str) -> Iterator[str]:
        return candidate_codes(long_url, self.max_attempts, fresh=not self.dedupe,
                               length=self.code_length)

    def _collision(self, long_url: str) -> CodeCollisionError:
        logger.error(f"No free short code for url={long_url} after {self.max_attempts} attempts")
        return CodeCollisionError(f"could not allocate a short code after {self.max_attempts} attempts")

    @abstractmethod
    async def set(self, long_url: str) -> str:
        """Store ``long_url`` and return its short code."""

    @abstractmethod
    async def get(self, code: str) -> Optional[str]:
        """Return the URL for ``code`` and count a hit, or None if unknown."""

    @abstractmethod
    async def get_stats(self, code: str) -> int:
        """Return the hit count for ``code``; raise UnknownCodeError if unknown."""

    @abstractmethod
    async def describe(self, code: str) -> MappingInfo:
        """Return the whole mapping without counting a hit."""

    async def close(self):
        pass


class SQLURLStore(URLStore):
    """Store backed by the ``urls`` table through SQLAlchemy async sessions."""

    def __init__(self, session_factory, **kwargs):
        super().__init__(**kwargs)
        self.session_factory = session_factory

    async def set(self, long_url: str) -> str:
        try:
            async with self.session_factory() as session:
                if self.dedupe:
                    result = await session.execute(
                        select(UrlMapping.short_code).where(UrlMapping.original_url == long_url).limit(1)
                    )
                    existing = result.scalar()
                    if existing:
                        logger.info(f"Reusing code={existing} for url={long_url}")
                        return existing

                for code in self._candidates(long_url):
                    result = await session.execute(
                        select(UrlMapping.original_url).where(UrlMapping.short_code == code)
                    )
                    owner = result.scalar()
                    if owner is not None:
                        if self.dedupe and owner == long_url:
                            return code
                        logger.warning(f"Short code collision: code={code}")
                        continue

                    session.add(UrlMapping(short_code=code, original_url=long_url))
                    try:
                        await session.commit()
                    except IntegrityError:
                        # Lost a race for this code to a concurrent insert.
                        await session.rollback()
                        result = await session.execute(
                            select(UrlMapping.original_url).where(UrlMapping.short_code == code)
                        )
                        if self.dedupe and result.scalar() == long_url:
                            return code
                        logger.warning(f"Short code collision on insert: code={code}")
                        continue
                    logger.info(f"Stored code={code} for url={long_url}")
                    return code
        except SQLAlchemyError as exc:
            logger.error(f"Storing url={long_url} failed: {exc}", exc_info=True)
            raise StorageError("could not store URL") from exc
        raise self._collision(long_url)

    async def get(self, code: str) -> Optional[str]:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    # Update first so concurrent lookups of a code serialize on the row write.
                    result = await session.execute(
                        update(UrlMapping)
                        .where(UrlMapping.short_code == code)
                        .values(hits=UrlMapping.hits + 1)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount == 0:
                        return None
                    result = await session.execute(
                        select(UrlMapping.original_url).where(UrlMapping.short_code == code)
                    )
                    long_url = result.scalar()
                return long_url
        except SQLAlchemyError as exc:
            logger.error(f"Lookup of code={code} failed: {exc}", exc_info=True)
            raise StorageError("could not look up URL") from exc

    async def get_stats(self, code: str) -> int:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(UrlMapping.hits).where(UrlMapping.short_code == code)
                )
                hits = result.scalar()
        except SQLAlchemyError as exc:
            logger.error(f"Stats lookup of code={code} failed: {exc}", exc_info=True)
            raise StorageError("could not read stats") from exc
        if hits is None:
            raise UnknownCodeError(code)
        return hits

    async def describe(self, code: str) -> MappingInfo:
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(UrlMapping).where(UrlMapping.short_code == code))
                entry = result.scalar()
        except SQLAlchemyError as exc:
            logger.error(f"Metadata lookup of code={code} failed: {exc}", exc_info=True)
            raise StorageError("could not read mapping") from exc
        if entry is None:
            raise UnknownCodeError(code)
        return MappingInfo(code=entry.short_code, url=entry.original_url,
                           created_at=entry.created_at, hits=entry.hits)


class MemoryURLStore(URLStore):
    """Process-local store. One lock guards both indexes."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._lock = asyncio.Lock()
        self._by_code: Dict[str, MappingInfo] = {}
        self._by_url: Dict[str, str] = {}

    async def set(self, long_url: str) -> str:
        async with self._lock:
            if self.dedupe and long_url in self._by_url:
                return self._by_url[long_url]
            for code in self._candidates(long_url):
                if code in self._by_code:
                    logger.warning(f"Short code collision: code={code}")
                    continue
                self._by_code[code] = MappingInfo(code=code, url=long_url,
                                                  created_at=datetime.utcnow(), hits=0)
                self._by_url.setdefault(long_url, code)
                logger.info(f"Stored code={code} for url={long_url}")
                return code
        raise self._collision(long_url)

    async def get(self, code: str) -> Optional[str]:
        async with self._lock:
            entry = self._by_code.get(code)
            if entry is None:
                return None
            entry.hits += 1
            return entry.url

    async def get_stats(self, code: str) -> int:
        async with self._lock:
            entry = self._by_code.get(code)
            if entry is None:
                raise UnknownCodeError(code)
            return entry.hits

    async def describe(self, code: str) -> MappingInfo:
        async with self._lock:
            entry = self._by_code.get(code)
            if entry is None:
                raise UnknownCodeError(code)
            return entry.model_copy()

    async def close(self):
        async with self._lock:
            self._by_code.clear()
            self._by_url.clear()


def build_store(backend: Optional[str] = None, policy: Optional[str] = None,
                session_factory=None) -> URLStore:
    backend = config.STORE_BACKEND if backend is None else backend
    policy = config.CODE_POLICY if policy is None else policy
    if policy not in ("content", "timestamp"):
        raise ValueError(f"Unknown CODE_POLICY: {policy}")
    dedupe = policy == "content"
    if backend == "memory":
        return MemoryURLStore(dedupe=dedupe)
    if backend == "sql":
        if session_factory is None:
            from db import SessionLocal
            session_factory = SessionLocal
        return SQLURLStore(session_factory, dedupe=dedupe)
    raise ValueError(f"Unknown STORE_BACKEND: {backend}")
