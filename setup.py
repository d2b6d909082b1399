from setuptools import setup, find_packages

setup(
    name="push-relay",
    version="1.0.0",
    description="Relay database trigger events to FCM admin notifications",
    author="PushRelay",
    package_dir={"": "Sources"},
    packages=find_packages(where="Sources"),
    install_requires=[
        "requests>=2.25.0",
        "firebase-functions>=0.4.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
)
