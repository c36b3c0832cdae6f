from setuptools import setup, find_namespace_packages

setup(
    name="bookstock",
    version="0.1.0",
    packages=find_namespace_packages(include=['bookstock*']),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "Click",
        "SQLAlchemy>=2.0",
        "requests",
        "pydantic>=2",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "bookstock=bookstock.cli.main:main",
        ],
    },
)
