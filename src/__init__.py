"""LMS Core Backend.

Enrollment, progression and graduation core of a learning management
system: batches move through a forward-only lifecycle, students are
enrolled into classes and modules, promoted along a batch's class
sequence and graduated with numbered certificates.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "0.1.0"
