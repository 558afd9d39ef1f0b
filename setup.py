"""Install the customer accounts service."""

from setuptools import setup, find_packages

setup(
    name='customer-accounts',
    version='0.3.0',
    packages=find_packages(exclude=['*tests*']),
    install_requires=[
        "flask",
        "flask-sqlalchemy",
        "sqlalchemy",
        "redis",
        "requests",
        "cachecontrol",
        "google-auth",
        "google-cloud-tasks",
        "stripe>=12,<17",
        "pydantic",
        "python-json-logger>=3.1",
        "statsd",
    ],
    extras_require={
        'test': [
            "pytest",
            "pytest-mock",
        ],
    },
    zip_safe=False
)
