"""
Scoped query cache.

Views describe *what* they need with a CacheKey (entity name followed by
scope ids such as the project id) and a fetcher; the QueryClient decides
*when* to hit the database. Mutations invalidate key prefixes so that the
next read refetches.

Invalidation works on any Django cache backend: every key prefix owns a
generation counter, and entries are stored under the generations that were
current when the fetch started. Bumping a prefix generation makes every
entry below it unreachable.
"""
import enum
import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from django.conf import settings
from django.core.cache import cache

from .services import ServiceError

logger = logging.getLogger(__name__)

GENERATION_KEY_PREFIX = 'qc:gen:'
ENTRY_KEY_PREFIX = 'qc:entry'
PENDING_KEY_PREFIX = 'qc:pending:'
PENDING_TTL = 30  # seconds


class Entity(str, enum.Enum):
    """Cacheable entities. The first element of every CacheKey."""
    ORGANIZATIONS = 'organizations'
    USERS = 'users'
    PLANS = 'plans'
    PROJECTS = 'projects'
    ACTIVITIES = 'activities'
    STATS = 'stats'
    CONTACTS = 'contacts'
    CONTACT_TYPES = 'contact-types'
    SITE_LOGS = 'site-logs'
    MOVEMENTS = 'movements'
    MOVEMENT_CONCEPTS = 'movement-concepts'
    WALLETS = 'wallets'
    UNITS = 'units'
    ACTIONS = 'actions'
    TASK_CATEGORIES = 'task-categories'
    MATERIALS = 'materials'
    TASKS = 'tasks'
    BUDGETS = 'budgets'
    BUDGET_TASKS = 'budget-tasks'
    TIMELINE_EVENTS = 'timeline-events'
    CALENDAR_EVENTS = 'calendar-events'


class CacheKey(tuple):
    """Ordered key: entity name followed by scope ids.

    Unknown entity names raise ValueError. Scope ids are normalised to
    strings so that ``CacheKey('movements', 5)`` and
    ``CacheKey('movements', '5')`` address the same entry.
    """

    def __new__(cls, entity, *scope):
        return super().__new__(cls, (Entity(entity).value,) + tuple(str(s) for s in scope))

    @property
    def parts(self):
        return tuple(self)

    @property
    def entity(self):
        return self[0]

    @property
    def scope(self):
        return tuple(self[1:])

    def startswith(self, prefix):
        prefix = tuple(prefix)
        return tuple(self[:len(prefix)]) == prefix

    def prefixes(self):
        """All prefixes from the bare entity up to the full key."""
        return [tuple(self[:i]) for i in range(1, len(self) + 1)]

    def __repr__(self):
        return f"CacheKey{tuple(self)!r}"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def _query_settings():
    defaults = {'STALE_TIME': 60, 'GC_TIME': 300, 'RETRY': 1, 'MAX_OBSERVERS': 1000}
    defaults.update(getattr(settings, 'ARCHUB_QUERY', {}))
    return defaults


@dataclass(frozen=True)
class QueryOptions:
    enabled: bool = True
    stale_time: Optional[int] = None
    gc_time: Optional[int] = None
    retry: Optional[int] = None
    refetch_on_window_focus: bool = True
    default: Callable[[], Any] = list


@dataclass
class QueryResult:
    data: Any
    is_loading: bool = False
    error: Optional[Exception] = None
    updated_at: Optional[float] = None
    is_stale: bool = False

    @property
    def is_error(self):
        return self.error is not None


class QueryClient:
    """Fetch-or-serve over django.core.cache, keyed by CacheKey."""

    def __init__(self, backend=None):
        self.backend = backend or cache
        self._lock = threading.Lock()
        self._in_flight = set()
        # key -> expiry; oldest first
        self._observers = OrderedDict()

    # --- generations ---

    def _generation_key(self, prefix):
        return f"{GENERATION_KEY_PREFIX}{':'.join(prefix)}"

    def _generations(self, key):
        names = [self._generation_key(p) for p in key.prefixes()]
        found = self.backend.get_many(names)
        return tuple(found.get(name, 0) for name in names)

    def _entry_key(self, key, generations):
        return make_cache_key(ENTRY_KEY_PREFIX, *key, generations=generations)

    # --- reads ---

    def get_query_data(self, key):
        """Cached data for key, or None when absent or invalidated."""
        key = key if isinstance(key, CacheKey) else CacheKey(*key)
        entry = self.backend.get(self._entry_key(key, self._generations(key)))
        return entry['data'] if entry else None

    def query(self, key, fetcher, options=None):
        key = key if isinstance(key, CacheKey) else CacheKey(*key)
        options = options or QueryOptions()
        conf = _query_settings()

        if not options.enabled:
            logger.debug(f"Query disabled for {key!r}")
            return QueryResult(data=options.default())

        if options.refetch_on_window_focus:
            gc_time = conf['GC_TIME'] if options.gc_time is None else options.gc_time
            self._observe(key, gc_time, conf['MAX_OBSERVERS'])

        generations = self._generations(key)
        entry_key = self._entry_key(key, generations)
        entry = self.backend.get(entry_key)
        stale_time = conf['STALE_TIME'] if options.stale_time is None else options.stale_time
        if entry is not None and time.time() - entry['fetched_at'] < stale_time:
            logger.debug(f"Cache HIT for {key!r}")
            return QueryResult(data=entry['data'], updated_at=entry['fetched_at'])

        with self._lock:
            if key in self._in_flight:
                return QueryResult(
                    data=entry['data'] if entry else options.default(),
                    is_loading=True,
                    updated_at=entry['fetched_at'] if entry else None,
                    is_stale=entry is not None,
                )
            self._in_flight.add(key)

        logger.debug(f"Cache MISS for {key!r}")
        try:
            retry = conf['RETRY'] if options.retry is None else options.retry
            error = None
            for attempt in range(retry + 1):
                try:
                    data = fetcher()
                except Exception as e:
                    error = e
                    logger.warning(f"Query {key!r} failed (attempt {attempt + 1}/{retry + 1}): {e}")
                    continue
                fetched_at = time.time()
                gc_time = conf['GC_TIME'] if options.gc_time is None else options.gc_time
                self.backend.set(entry_key, {'data': data, 'fetched_at': fetched_at}, gc_time)
                return QueryResult(data=data, updated_at=fetched_at)
            return QueryResult(data=options.default(), error=error)
        finally:
            with self._lock:
                self._in_flight.discard(key)

    # --- invalidation ---

    def invalidate(self, entity, *scope):
        """Mark every entry whose key starts with (entity, *scope) as stale."""
        prefix = tuple(CacheKey(entity, *scope))
        name = self._generation_key(prefix)
        self.backend.add(name, 0, None)
        try:
            generation = self.backend.incr(name)
        except ValueError:
            # evicted between add() and incr()
            generation = 1
            self.backend.set(name, generation, None)
        logger.info(f"Invalidated queries under {prefix!r} (generation {generation})")
        return generation

    def invalidate_all(self):
        for entity in Entity:
            self.invalidate(entity)

    # --- window focus ---

    def _observe(self, key, ttl, limit):
        """Remember key for window-focus refetches until its entry would be collected."""
        now = time.time()
        with self._lock:
            self._observers[key] = now + ttl
            self._observers.move_to_end(key)
            self._prune(now)
            while len(self._observers) > limit:
                self._observers.popitem(last=False)

    def _prune(self, now):
        for key in [k for k, expires_at in self._observers.items() if expires_at <= now]:
            del self._observers[key]

    def observed_keys(self):
        with self._lock:
            self._prune(time.time())
            return list(self._observers)

    def on_window_focus(self, scopes=None):
        """
        Invalidate observed queries that asked to refetch on focus.

        With ``scopes`` only keys whose first scope id is one of them are
        refetched, e.g. the organization and project the user works in.
        """
        keys = self.observed_keys()
        if scopes is not None:
            scopes = {str(s) for s in scopes if s is not None}
            keys = [k for k in keys if k.scope and k.scope[0] in scopes]
        for key in keys:
            self.invalidate(*key)
        return len(keys)


@dataclass
class Notification:
    """User-facing toast produced at the mutation boundary."""
    title: str
    description: str = ''
    variant: str = 'default'

    def as_dict(self):
        return {'title': self.title, 'description': self.description, 'variant': self.variant}


@dataclass
class MutationResult:
    data: Any = None
    error: Optional[Exception] = None
    notification: Optional[Notification] = None

    @property
    def ok(self):
        return self.error is None


@dataclass
class Mutation:
    """A write plus the cache keys it invalidates.

    ``mutate`` runs ``fn``, then invalidates every key in ``invalidates``,
    then runs ``on_success``; invalidation always precedes the success
    callbacks. A call made while the mutation is pending returns None
    without calling ``fn``. With ``pending_key`` the pending flag lives in
    the cache, so concurrent requests share it.
    """
    fn: Callable
    invalidates: tuple = ()
    success_message: Any = None
    error_message: str = 'No se pudo guardar'
    on_success: Optional[Callable] = None
    on_error: Optional[Callable] = None
    pending_key: Optional[str] = None
    client: Optional[QueryClient] = None
    is_pending: bool = field(default=False, init=False)

    def __post_init__(self):
        self.invalidates = tuple(k if isinstance(k, CacheKey) else CacheKey(*k) for k in self.invalidates)
        self._lock = threading.Lock()

    def _acquire(self):
        with self._lock:
            if self.is_pending:
                return False
            if self.pending_key and not cache.add(f"{PENDING_KEY_PREFIX}{self.pending_key}", 1, PENDING_TTL):
                return False
            self.is_pending = True
            return True

    def _release(self):
        with self._lock:
            self.is_pending = False
            if self.pending_key:
                cache.delete(f"{PENDING_KEY_PREFIX}{self.pending_key}")

    def mutate(self, *args, **kwargs):
        if not self._acquire():
            logger.info(f"Ignoring duplicate submit for {getattr(self.fn, '__name__', self.fn)}")
            return None
        client = self.client or query_client
        try:
            try:
                data = self.fn(*args, **kwargs)
            except ServiceError as e:
                logger.error(f"Mutation {getattr(self.fn, '__name__', self.fn)} failed: {e.original or e}")
                if self.on_error:
                    self.on_error(e)
                return MutationResult(
                    error=e,
                    notification=Notification('Error', self.error_message, 'destructive'),
                )
            for key in self.invalidates:
                client.invalidate(*key)
            if self.on_success:
                self.on_success(data)
            message = self.success_message(data) if callable(self.success_message) else self.success_message
            notification = message if isinstance(message, Notification) or message is None else Notification(str(message))
            return MutationResult(data=data, notification=notification)
        finally:
            self._release()


query_client = QueryClient()
