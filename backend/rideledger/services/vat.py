"""
VAT rate resolver for Romanian legislation.

Rates are reference data kept in the Supabase ``vat_rates`` table, each valid
during a half-open window [effective_from, effective_to). The service caches
the table in-process and falls back, in order, to the database function
``get_active_vat_rate``, the rate flagged as default, and finally the
statutory standard rate hardcoded below. Read paths never raise: a reference
data outage must not block saving a document.
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple, Union

from rideledger.config import settings
from rideledger.models.vat import VatInTotal, VatOnNet, VatRate, VatRateOption
from rideledger.utils.money import round_money, to_decimal

logger = logging.getLogger(__name__)

# Used only when no reference record is flagged as default
FALLBACK_VAT_RATE = Decimal('19')

# 0% and the two reduced tiers are always accepted on documents
CANONICAL_RATE_TIERS = (Decimal('0'), Decimal('5'), Decimal('9'))

# Standard rate schedule from the Fiscal Code, newest first
STATUTORY_VAT_RATES = [
    VatRate(
        id='ro-standard-2025-08',
        rate_percentage=Decimal('21'),
        effective_from=date(2025, 8, 1),
        is_default=True,
        description='Cota standard',
    ),
    VatRate(
        id='ro-standard-2017-01',
        rate_percentage=Decimal('19'),
        effective_from=date(2017, 1, 1),
        effective_to=date(2025, 8, 1),
        description='Cota standard',
    ),
]

RateFetcher = Callable[[], Iterable[VatRate]]
RateResolver = Callable[[date], Optional[Union[Decimal, int, float, str]]]


def format_rate(rate: Decimal) -> str:
    """Render a rate without trailing zeros: Decimal('19.00') -> '19'."""
    return format(rate.normalize(), 'f')


def add_vat(net_amount: Decimal, rate: Decimal) -> Tuple[Decimal, Decimal]:
    """(vat, total) for a net amount, rounded half-up to bani."""
    vat_amount = round_money(net_amount * rate / Decimal('100'))
    return vat_amount, round_money(net_amount + vat_amount)


def split_total(total_amount: Decimal, rate: Decimal) -> Tuple[Decimal, Decimal]:
    """(net, vat) contained in a VAT-inclusive total; net + vat == total."""
    net_amount = round_money(total_amount / (Decimal('1') + rate / Decimal('100')))
    return net_amount, round_money(total_amount - net_amount)


class VatRateService:
    """
    Cached access to time-versioned VAT rates.

    Create one instance per application and inject it where needed; tests
    build their own with in-memory fetchers.
    """

    def __init__(
        self,
        fetch_rates: RateFetcher,
        resolve_rate: Optional[RateResolver] = None,
        cache_ttl_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._fetch_rates = fetch_rates
        self._resolve_rate = resolve_rate
        ttl = settings.VAT_CACHE_TTL_SECONDS if cache_ttl_seconds is None else cache_ttl_seconds
        self._cache_ttl = timedelta(seconds=ttl)
        self._clock = clock
        self._cached_rates: List[VatRate] = []
        self._last_fetch: Optional[datetime] = None

    @classmethod
    def from_supabase(cls, client_factory=None, cache_ttl_seconds: Optional[int] = None) -> 'VatRateService':
        """
        Build a service reading the ``vat_rates`` table and the
        ``get_active_vat_rate`` RPC. The client is created lazily on each
        fetch so a missing configuration degrades instead of failing startup.
        """
        if client_factory is None:
            from rideledger.utils.supabase import get_supabase_anon_client
            client_factory = get_supabase_anon_client

        def fetch_rates() -> List[VatRate]:
            response = client_factory().table('vat_rates').select('*').order(
                'effective_from', desc=True
            ).execute()
            return [_row_to_vat_rate(row) for row in response.data or []]

        def resolve_rate(target_date: date):
            response = client_factory().rpc(
                'get_active_vat_rate', {'target_date': target_date.isoformat()}
            ).execute()
            return response.data

        return cls(fetch_rates, resolve_rate, cache_ttl_seconds=cache_ttl_seconds)

    def _target_date(self, on: Optional[date]) -> date:
        """Requested date, or today; datetimes are truncated to their date."""
        if on is None:
            return self._clock().date()
        if isinstance(on, datetime):
            return on.date()
        return on

    def _fetch(self) -> Optional[List[VatRate]]:
        """Fetch reference rates; None signals the store was unreachable."""
        try:
            return list(self._fetch_rates())
        except Exception as e:
            logger.warning("Could not fetch VAT rates", extra={"error": str(e)}, exc_info=True)
            return None

    def _should_refresh(self) -> bool:
        if self._last_fetch is None or not self._cached_rates:
            return True
        return self._clock() - self._last_fetch > self._cache_ttl

    def _refresh_if_stale(self) -> None:
        if not self._should_refresh():
            return

        rates = self._fetch()
        if rates is None:
            # Keep serving whatever was cached before the outage
            return

        self._cached_rates = rates
        self._last_fetch = self._clock()
        logger.debug("Refreshed VAT rate cache", extra={"rate_count": len(rates)})

    def invalidate(self) -> None:
        """Drop the cache so the next read goes to the reference store."""
        self._cached_rates = []
        self._last_fetch = None

    def all_rates(self) -> List[VatRate]:
        """All reference rates in store order (newest first), cached."""
        self._refresh_if_stale()
        return list(self._cached_rates)

    def active_rate(self, on: Optional[date] = None) -> Decimal:
        """
        Rate legally in force on a date (today by default).

        Args:
            on: Target date

        Returns:
            Rate percentage, e.g. Decimal('21')
        """
        target = self._target_date(on)

        self._refresh_if_stale()

        for rate in self._cached_rates:
            if rate.is_effective_on(target):
                return rate.rate_percentage

        if self._resolve_rate is not None:
            try:
                resolved = to_decimal(self._resolve_rate(target))
                # The database function answers 0 or null when no row matches
                if resolved is not None and resolved > 0:
                    return resolved
            except Exception as e:
                logger.warning("VAT rate resolver failed", extra={
                    "target_date": target.isoformat(),
                    "error": str(e)
                }, exc_info=True)

        return self.default_rate()

    def default_rate(self) -> Decimal:
        """Rate flagged as default in the reference data, else 19%."""
        self._refresh_if_stale()

        for rate in self._cached_rates:
            if rate.is_default:
                return rate.rate_percentage

        return FALLBACK_VAT_RATE

    def _rate_or_default(self, rate) -> Decimal:
        # Explicit 0% is a valid rate, only None means "use default"
        value = to_decimal(rate)
        return self.default_rate() if value is None else value

    def calculate_vat(self, net_amount, rate=None) -> VatOnNet:
        """VAT and total for a net (pre-tax) amount."""
        vat_amount, total_amount = add_vat(to_decimal(net_amount), self._rate_or_default(rate))
        return VatOnNet(vat_amount=vat_amount, total_amount=total_amount)

    def calculate_net_from_total(self, total_amount, rate=None) -> VatInTotal:
        """Net and VAT contained in a tax-inclusive total."""
        net_amount, vat_amount = split_total(to_decimal(total_amount), self._rate_or_default(rate))
        return VatInTotal(net_amount=net_amount, vat_amount=vat_amount)

    def rate_options(self, on: Optional[date] = None) -> List[VatRateOption]:
        """
        Options for VAT rate dropdowns: canonical tiers plus reference rates,
        deduplicated by value and sorted ascending.
        """
        target = self._target_date(on)

        options = [
            VatRateOption(value=tier, label=f"{format_rate(tier)}%", is_active=True)
            for tier in CANONICAL_RATE_TIERS
        ]
        seen = set(CANONICAL_RATE_TIERS)

        for rate in self.all_rates():
            if rate.rate_percentage in seen:
                continue
            seen.add(rate.rate_percentage)

            label = f"{format_rate(rate.rate_percentage)}%"
            if rate.description:
                label = f"{label} ({rate.description})"

            options.append(VatRateOption(
                value=rate.rate_percentage,
                label=label,
                is_active=rate.is_effective_on(target),
            ))

        return sorted(options, key=lambda option: option.value)

    def is_valid_rate(self, rate, on: Optional[date] = None) -> bool:
        """Whether a rate may be used on a document dated ``on``."""
        value = to_decimal(rate)
        if value is None:
            return False

        if value in CANONICAL_RATE_TIERS:
            return True

        target = self._target_date(on)
        return any(
            r.rate_percentage == value and r.is_effective_on(target)
            for r in self.all_rates()
        )


def _row_to_vat_rate(row: dict) -> VatRate:
    return VatRate(
        id=str(row['id']),
        rate_percentage=to_decimal(row['rate_percentage']),
        effective_from=row['effective_from'],
        effective_to=row.get('effective_to'),
        is_default=bool(row.get('is_default')),
        description=row.get('description'),
    )


def statutory_vat_service() -> VatRateService:
    """Resolver over the built-in statutory schedule, no network involved."""
    return VatRateService(fetch_rates=lambda: list(STATUTORY_VAT_RATES))


def statutory_default_rate() -> Decimal:
    return statutory_vat_service().default_rate()
