from setuptools import setup, find_packages

setup(
    name="staking-client",
    version="0.1.0",
    packages=find_packages(include=["staking_client", "staking_client.*"]),
    package_data={
        "staking_client": ["idl/*.json", "config/*.yaml"],
    },
    include_package_data=True,
    install_requires=[
        # Solana / Anchor SDK
        "anchorpy>=0.20.1,<0.21",
        "solana>=0.34.0,<0.35",
        "solders>=0.21.0",
        "pyheck>=0.1.5",
        # Data validation and configuration
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "python-dotenv>=1.0.0",
        "PyYAML>=6.0",
        # CLI and UI
        "click>=8.1.3",
        "rich>=13.0.0",
        # Logging
        "coloredlogs>=15.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "anchorpy[pytest]>=0.20.1,<0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "stakingctl=staking_client.cli.main:main",
        ],
    },
    description="Client for the token staking Anchor program on Solana",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
)
