"""
libotp setup script
"""
#=============================================================================
# init script env -- ensure cwd = root of source dir
#=============================================================================
import os
root_dir = os.path.abspath(os.path.join(__file__, ".."))
os.chdir(root_dir)

#=============================================================================
# imports
#=============================================================================
from setuptools import setup, find_packages
import sys

#=============================================================================
# init setup options
#=============================================================================
args = sys.argv[1:]

#=============================================================================
# version string
#=============================================================================

# pull version string from libotp
from libotp import __version__ as version

#=============================================================================
# static text
#=============================================================================
SUMMARY = "HOTP / TOTP one-time password engine with base32 secret codec"

DESCRIPTION = """\
libotp generates and validates RFC 4226 (HOTP) and RFC 6238 (TOTP)
one-time passwords, as used by Google Authenticator & similar apps.
It includes a lenient RFC 4648 base32 codec for shared secrets,
pluggable HMAC providers (hashlib or cryptography),
and helpers for otpauth:// provisioning uris.
"""

KEYWORDS = """\
otp hotp totp 2fa
base32 hmac
google-authenticator
"""

CLASSIFIERS = """\
Intended Audience :: Developers
License :: OSI Approved :: BSD License
Natural Language :: English
Operating System :: OS Independent
Programming Language :: Python :: 3
Programming Language :: Python :: Implementation :: CPython
Programming Language :: Python :: Implementation :: PyPy
Topic :: Security :: Cryptography
Topic :: Software Development :: Libraries
""".splitlines()

if '.dev' in version:
    CLASSIFIERS.append("Development Status :: 3 - Alpha")
elif '.post' in version:
    CLASSIFIERS.append("Development Status :: 4 - Beta")
else:
    CLASSIFIERS.append("Development Status :: 5 - Production/Stable")

#=============================================================================
# run setup
#=============================================================================
setup(
    # package info
    packages=find_packages(root_dir, include=["libotp", "libotp.*"]),
    zip_safe=True,
    python_requires=">=3.9",

    # metadata
    name="libotp",
    version=version,
    license="BSD",

    description=SUMMARY,
    long_description=DESCRIPTION,
    keywords=KEYWORDS,
    classifiers=CLASSIFIERS,

    install_requires=[
        "typing_extensions>=4.6",
    ],
    extras_require={
        "cryptography": "cryptography",
        "test": [
            "pytest",
            "pytest-archon",
            "cryptography",
        ],
    },

    # command line
    script_args=args,
)

#=============================================================================
# eof
#=============================================================================
