# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.


from .encryption_secret import EncryptionSecret
from .user_document import UserDocument
