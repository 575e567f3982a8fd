from setuptools import setup, find_packages

setup(
    name="moodscale_backend",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy>=2.0,<2.1",
        "psycopg2-binary",
        "pydantic",
        "pydantic-settings",
        "redis",
        "spotipy",
        "openai",
        "cryptography",
        "pytz",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    python_requires=">=3.9",
)
