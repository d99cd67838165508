from setuptools import setup, find_packages

setup(
    name="photo-gallery",
    version="1.0.0",
    packages=find_packages(include=["photo_gallery", "photo_gallery.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy>=2.0",
        "pydantic>=2.0",
        "pydantic-settings",
        "python-multipart",
        "Pillow",
        "psycopg2-binary",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
    python_requires=">=3.10",
)
