# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Bus registry API access
"""
from registry_ops.client import RegistryClient
from registry_ops.queries import (
    RegistryError,
    RegistryResponseError,
    RegistrySnapshot,
    RemoteBus,
)
