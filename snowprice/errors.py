"""
Error taxonomy for the reconciliation pipeline.

Normalization and classification never raise for malformed input; they
degrade to None / "uncategorized". Only adapter-level total failures and
operation conflicts reach the caller as exceptions. A consensus result that
needs human confirmation is a typed result, not an exception.
"""


class CatalogError(Exception):
    """Base class for all snowprice errors."""


class PriceParseError(CatalogError, ValueError):
    """Price text could not be parsed. Recovered locally (amount -> None)."""


class OutOfRangeValue(CatalogError):
    """Converted price outside the plausible window. Listing is dropped and counted."""

    def __init__(self, product_url: str, price_reference: float):
        self.product_url = product_url
        self.price_reference = price_reference
        super().__init__(
            f"price out of range: {price_reference} for {product_url}"
        )


class SourceUnreachable(CatalogError):
    """An extraction adapter could not reach the source at all."""


class NoListingsFound(SourceUnreachable):
    """The source was reachable but no listings could be extracted."""


class ConsensusFailed(CatalogError):
    """The secondary extraction pass errored; the merge must not be applied."""

    def __init__(self, store_id: str, errors: list[str]):
        self.store_id = store_id
        self.errors = errors
        super().__init__(f"consensus validation failed for {store_id}: {'; '.join(errors)}")


class OperationInProgress(CatalogError):
    """A mutating operation of the same type is already running."""


class StoreNotFound(CatalogError, LookupError):
    """Unknown store id."""


class BuiltInStoreError(CatalogError):
    """Built-in stores cannot be modified or removed."""


class ProductNotFound(CatalogError, LookupError):
    """No canonical product or raw listing has the given key."""
