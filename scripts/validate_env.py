import sys
import argparse
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

load_dotenv(Path(__file__).parent.parent / '.env')

from turbolearn.config import ProviderConfig, validate_environment  # noqa: E402


def main(argv=None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument('--strict', '-s', action='store_true', help='Convert warnings to failures')
    parser.add_argument('--check-remote', action='store_true', help='Call the provider to verify the key')
    args = parser.parse_args(argv)

    try:
        config = ProviderConfig()
    except ValidationError as e:
        print('\nENV validation failed:')
        for err in e.errors():
            print(' -', '.'.join(str(p) for p in err['loc']), err['msg'])
        return 1

    errors, warnings = validate_environment(config)

    # provider check - best effort
    if args.check_remote and config.is_configured and config.provider == 'openai':
        try:
            from openai import OpenAI
            client = OpenAI(api_key=config.api_key, base_url=config.base_url, max_retries=0)
            client.models.list()
            print('Provider: API reachable')
        except Exception as e:
            warnings.append(f'Provider check failed: {e}')

    if errors:
        print('\nENV validation failed:')
        for e in errors:
            print(' -', e)
        return 1

    if warnings:
        print('\nWarnings:')
        for w in warnings:
            print(' -', w)
        if args.strict:
            print('\nStrict mode enabled: treating warnings as errors')
            return 1

    print(f'\nAll critical validations passed ({config.provider}:{config.model_id})')
    return 0


if __name__ == '__main__':
    sys.exit(main())
