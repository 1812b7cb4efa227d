from setuptools import setup, find_packages

setup(
    name="wigglebyte-console",
    version="0.1.0",
    packages=find_packages(include=["wigglebyte", "wigglebyte.*", "billing", "billing.*"]),
    include_package_data=True,
    install_requires=[
        "Django>=4.2",
        "python-dotenv>=1.0",
        "requests>=2.31",
        "django-cors-headers>=4.0",
        "whitenoise>=6.5",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-django>=4.5",
        ],
    },
    author="WiggleByte Security",
    author_email="support@wigglebyte.com",
    description="Customer console backend for WiggleByte Security: subscriptions, Razorpay checkout and billing history.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://wigglebyte.com",
    license="MIT",
    classifiers=[
        "Framework :: Django",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: MIT License"
    ],
    python_requires='>=3.9',
)
