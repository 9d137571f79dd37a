"""
Setup configuration for the site mapper package.
"""

from setuptools import setup, find_packages

setup(
    name="site_mapper",
    version="1.0.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "loguru>=0.7.0",
        "playwright>=1.40.0",
        "Pillow>=10.0.0",
        "sqlalchemy>=2.0.0",
        "asyncpg>=0.29.0",
        "redis>=5.0.1",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.23.0",
            "httpx>=0.25.0",
            "black>=24.0.0",
            "isort>=5.13.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "site-mapper=site_mapper.main:run_server",
        ]
    },
    python_requires=">=3.10",
    author="Site Mapper Team",
    description="Headless-browser site crawler that maps internal links and captures page screenshots",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
