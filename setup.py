from setuptools import setup, find_packages

setup(
    name="chatrelay",
    version="1.0.0",
    description="Line-based TCP chat relay with private messages and per-user block lists",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "colorama",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "chatrelay-server = chatrelay.server:main",
            "chatrelay-client = chatrelay.client:main",
        ],
    },
    python_requires=">=3.10",
)
