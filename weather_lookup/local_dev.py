"""
Local development server for the gateway.
Run this from the root directory: python -m weather_lookup.local_dev
"""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

root_dir = Path(__file__).parent.parent


def main() -> None:
    env_file = root_dir / ".env"
    if env_file.exists():
        load_dotenv(env_file)
        print(f"Loaded environment variables from {env_file}")
    else:
        print("No .env file found. Environment variables from shell will be used.")

    print("Starting Weather Lookup Gateway...")
    print("Try: http://localhost:8000/weather?city=London")

    uvicorn.run(
        "weather_lookup.lambda_function:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
