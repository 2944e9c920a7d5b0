from setuptools import setup
from assetlog import __version__

setup(
    name="assetlog",
    long_description="assetlog is a structured logging facade that attaches request context fields to NDJSON "
    "records and writes them to stdout, stderr and rotating files.",
    version=__version__,
    packages=[
        "assetlog",
        "assetlog.logging",
    ],
    include_package_data=True,
    install_requires=[
        "click>=8.2.0,<9.0.0",
        "pyyaml>=6.0.0,<7.0.0",
        "pyserde==0.12.*",
        "beartype>=0.17.0,<1.0.0",
        "humanfriendly>=10.0.0,<11.0.0",
    ],
    extras_require={
        "tests": [
            "pytest>=7.0.0",
            "pytest-mock>=3.10.0",
        ],
    },
    entry_points="""
        [console_scripts]
        assetlog=assetlog.cli:cli
    """,
)
