from setuptools import setup, find_packages
from pathlib import Path

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

install_requires = [
    "pydantic >= 2.5, < 3",
    "typing_extensions >= 4.0, < 5",
    "tomli >= 2.0.0, < 3",
    "networkx >= 2.5",
    "click >= 8, < 9",
    "rich-click >= 1.6.0, < 2",
    "rich >= 12",
]

extras_require = dict(
    tests=[
        "pytest >= 7",
    ],
    dev=[
        "black",
        "isort >= 5.10.0, < 6",
    ],
)

setup(
    name="wake-upgrades",
    description="Storage layout upgrade safety checker for Solidity contracts.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Ackee Blockchain",
    version="0.1.0",
    packages=find_packages(exclude=("examples", "tests",)),
    keywords=[
        "solidity",
        "ethereum",
        "upgradeable",
        "proxy",
        "storage layout",
        "audit",
        "security",
    ],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    license="ISC",
    entry_points=dict(
        console_scripts=[
            "wake-upgrades=wake_upgrades.cli.__main__:main",
        ]
    ),
)
