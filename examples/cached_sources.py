# python
import asyncio
import logging
import random

from env_resolver import (
    AUDIT,
    PolicyOptions,
    cached,
    get_audit_log,
    process_env,
    resolve_async,
    retry,
    secret_store_cache,
)


class FlakySecretStore:
    """Stands in for a remote secret store that sometimes times out."""

    name = "secret-store"

    async def load(self):
        await asyncio.sleep(0.05)
        if random.random() < 0.3:
            raise TimeoutError("secret store timed out")
        return {"DB_PASSWORD": "s3cr3t", "STRIPE_KEY": "sk_test_123"}


async def main() -> None:
    store = cached(retry(FlakySecretStore(), max_retries=3, delay=0.1), **secret_store_cache())
    AUDIT.subscribe(lambda event: print("audit:", event.type.value, event.key or ""))

    for _ in range(3):
        config = await resolve_async(
            {"DB_PASSWORD": "string", "STRIPE_KEY": "string", "PORT": "port:8080"},
            [process_env(), store],
            policies=PolicyOptions(enforce_allowed_sources={"DB_PASSWORD": ["secret-store"]}),
            enable_audit=True,
        )
        print("resolved keys:", sorted(config), "events:", len(get_audit_log(config)))
        print("cache:", dict(store.stats()))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
