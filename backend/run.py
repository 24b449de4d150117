import argparse
import logging
import os
import sys

from tatua.core.crypto import CryptoError, ensure_crypto_available
from tatua.core.secret_providers import EnvironmentSecretProvider, InteractiveSecretProvider
from tatua.core.storage import ConfigStore, PersistenceError, StoreError

EXIT_CONFIG = 2
EXIT_CRYPTO = 3
EXIT_PERSISTENCE = 4


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tatua Email Client configuration loader")
    parser.add_argument(
        "--config",
        type=str,
        default=os.getenv("TATUA_CONFIG", "email-config.json"),
        help="Path to the configuration document",
    )
    parser.add_argument("--hint-file", type=str, default=None, help="Where to record the master key hint")
    parser.add_argument(
        "--password-env",
        type=str,
        default=None,
        help="Read the master password from this environment variable instead of prompting",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.password_env:
        provider = EnvironmentSecretProvider(args.password_env)
    else:
        provider = InteractiveSecretProvider()

    try:
        ensure_crypto_available()
        with ConfigStore(args.config, provider, hint_path=args.hint_file) as store:
            smtp = store.get_smtp_config()
            info = store.summary()
            print(f"📂 Configuration: {info['config']} ({info['mode']})")
            print(f"📮 SMTP server: {smtp.host}:{smtp.port}")
            print(f"📨 Active templates: {info['templates']}, active recipients: {info['recipients']}")
    except PersistenceError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return EXIT_PERSISTENCE
    except StoreError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except CryptoError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return EXIT_CRYPTO
    print("✅ Configuration ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
