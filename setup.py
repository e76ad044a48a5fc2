from setuptools import find_packages, setup

setup(
    name="ruleset-reconcile",
    version="0.1.0",
    license="Apache License 2.0",

    python_requires=">=3.11",
    description="Reconcile GitHub branch rulesets of repositories with "
                "a desired ruleset template.",

    packages=find_packages(exclude=("tests",)),

    install_requires=[
        "Click>=8.0,<9.0",
        "toml>=0.10.0,<0.11.0",
        "PyGithub>=2.1,<3.0",
        "requests>=2.28,<3.0",
        "urllib3>=1.26,<3.0",
        "pydantic>=2.0,<3.0",
        "tabulate>=0.8.6,<0.10.0",
        "prometheus-client>=0.8,<1.0",
        "sentry-sdk>=1.0,<3.0",
    ],

    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-mock>=3.10",
            "pytest-httpserver>=1.0",
        ],
    },

    test_suite="tests",

    classifiers=[
        "Development Status :: 2 - Pre-Alpha",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
    entry_points={
        "console_scripts": [
            "ruleset-reconcile = ruleset_reconcile.cli:integration",
        ],
    },
)
