"""Per-currency totals over movement rows"""
import logging
from decimal import Decimal

logger = logging.getLogger(__name__)

CURRENCIES = ('ARS', 'USD')

# root concept name, lowercased -> bucket
TYPE_BUCKETS = {
    'ingreso': 'ingresos',
    'ingresos': 'ingresos',
    'egreso': 'egresos',
    'egresos': 'egresos',
    'ajuste': 'ajustes',
    'ajustes': 'ajustes',
}


def _empty_totals():
    return {'ingresos': Decimal('0.00'), 'egresos': Decimal('0.00'), 'ajustes': Decimal('0.00')}


def totals_by_currency(movements):
    """
    Sum movement amounts per currency and type.

    ``movements`` are serialized movement rows (``currency``, ``amount``,
    ``type_name``). Returns ``{currency: {ingresos, egresos, ajustes,
    balance}}`` for ARS and USD with balance = ingresos - egresos + ajustes.
    Rows of an unknown type or currency are skipped.
    """
    totals = {currency: _empty_totals() for currency in CURRENCIES}
    for movement in movements:
        bucket = TYPE_BUCKETS.get((movement.get('type_name') or '').strip().lower())
        target = totals.get(movement.get('currency'))
        if bucket is None or target is None:
            logger.debug(
                f"Skipping movement {movement.get('id')} "
                f"(type={movement.get('type_name')}, currency={movement.get('currency')})"
            )
            continue
        target[bucket] += Decimal(str(movement.get('amount') or 0))

    for values in totals.values():
        values['balance'] = values['ingresos'] - values['egresos'] + values['ajustes']
    return totals
