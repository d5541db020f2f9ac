# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="LanArenaFPS",
    version="0.2.0",
    description="Authoritative LAN server for a browser-playable arena shooter",
    python_requires=">=3.9",
    packages=find_namespace_packages(include=["common", "engine", "game"]),
    py_modules=["server"],
    install_requires=[
        "websockets>=12.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["lan-arena-server=server:main"],
    },
)
