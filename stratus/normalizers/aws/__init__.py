"""AWS source schemas. Importing this package registers its normalizers."""

from stratus.normalizers.aws import compute, groups, network  # noqa: F401
