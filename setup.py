from setuptools import setup, find_packages

setup(
    name="inventory-pipeline",
    version="0.1.0",
    packages=find_packages(include=["cache*", "config*", "inventory*", "monitoring*", "pipeline*"]),
    install_requires=[
        "pydantic>=2",
        "pydantic-settings",
        "structlog",
        "redis>=5",
        "prometheus-client",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    python_requires=">=3.10",
)
