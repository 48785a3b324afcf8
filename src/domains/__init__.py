# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the LMS core.

This package contains domain services that encapsulate business logic.
Every public service operation returns a ServiceResult; validation
failures are raised as ServiceError subclasses and converted at the
``service_operation`` boundary.

Domains:
    identity: Users, roles and batch membership.
    class_: Class management.
    batch: Batch lifecycle, class offering and statistics.
    class_enrollment: Class enrollment, completion and promotion.
    module_enrollment: Module enrollment with activity history.
    graduation: Graduation, performance derivation and certificates.
    activity: Activity history sink.
"""
