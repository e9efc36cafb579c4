from setuptools import setup, find_packages

setup(
    name="codablebloom",
    version="0.2.0",
    description="A deterministic, serializable bloom filter implementation in Python",
    long_description="A bloom filter whose hash functions (djb2, djb2a, sdbm, FNV-1, FNV-1a and 32-bit murmurhash3) are seed-free, so identical filters encode to identical JSON or binary blobs on every platform.",
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)",
        "Programming Language :: Python :: 3",
    ],
    keywords="bloom filter deterministic hash serialization dedup",
    license="Mozilla Public License 2.0 (MPL 2.0)",
    packages=["codablebloom"],
    python_requires=">=3.8",
    install_requires=["bitarray>=1.0", "mmh3>=2.5.1", "Deprecated"],
    include_package_data=True,
    zip_safe=False,
)
