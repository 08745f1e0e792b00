from setuptools import setup, find_namespace_packages

setup(
    name="bookloft",
    version="0.1.0",
    packages=find_namespace_packages(include=['cli*', 'bookloft*', 'api*']),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "Click",
        "SQLAlchemy>=2.0",
        "pydantic>=2",
        "fastapi",
    ],
    extras_require={
        "server": [
            "uvicorn",
        ],
        "test": [
            "pytest",
            "httpx",  # FastAPI TestClient
        ],
    },
    entry_points={
        "console_scripts": [
            "bookloft=cli.main:main",
        ],
    },
)
