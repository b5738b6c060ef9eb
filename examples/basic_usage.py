# python
import logging

from env_resolver import ResolverValidationError, dotenv, process_env, resolve, safe_resolve
from env_resolver.schema import fields

if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)

    schema = {
        "PORT": 3000,
        "NODE_ENV": ["development", "production", "test"],
        "DATABASE_URL": fields.postgres(optional=True),
        "API_KEY": fields.secret(optional=True),
        "ALLOWED_HOSTS": fields.string_array(default=["localhost"]),
        "REQUEST_TIMEOUT": "duration:5s",
    }

    config = resolve(schema, [dotenv(".env"), process_env()])
    print("Port:", config["PORT"])
    print("Timeout (ms):", config["REQUEST_TIMEOUT"])

    result = safe_resolve({"MUST_BE_SET": "string", "WORKERS": "number"}, [])
    if not result.success:
        print(result.error)

    try:
        resolve({"LOG_LEVEL": ["debug", "info"]}, [], validate_defaults=True)
    except ResolverValidationError as exc:
        print("Errors:", exc.errors)
