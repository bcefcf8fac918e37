import asyncio
from datetime import date

from oer_forex import AccountLevel, ForexConfig, OerClient, OerResponseError

# OER_APP_ID must be exported; OER_BASE_CURRENCY / OER_ACCOUNT_LEVEL are optional.
config = ForexConfig.from_env()
print(config.base_currency, config.account_level.value)  # e.g. EUR developer

# Explicit configuration works too
config = ForexConfig(app_id=config.app_id, base_currency="EUR", account_level=AccountLevel.DEVELOPER)


async def main() -> None:
    with OerClient.with_default_caches(config) as client:
        await _walkthrough(client)


async def _walkthrough(client: OerClient) -> None:
    # Live EUR -> GBP (one API call fills the nowish cache with every currency)
    print(await client.get_live_rate("GBP"))

    # Served from the nowish cache for the next five minutes
    print(await client.lookup_live_rate("JPY"))

    # End-of-day rate for a specific date
    result = await client.get_historical_rate("GBP", date(2011, 3, 5))
    if isinstance(result, OerResponseError):
        print(result.kind, result.message)
    else:
        print(result)

    # Dates before 1999-01-01 are rejected without a request
    print(await client.get_historical_rate("GBP", date(1998, 12, 31)))


asyncio.run(main())
