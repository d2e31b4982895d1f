"""Notification channel eligibility rules — pure functions."""

from dataclasses import dataclass
from typing import Optional

from routekit.resilience import BreakerRegistry
from routekit.scoring import RuleResult, check_enabled
from verticals.notifications.models import (
    Channel,
    ChannelProfile,
    Notification,
    NotificationPreference,
    Priority,
)

QUIET_HOURS_MESSAGE = "Suppressed by quiet hours"

# Contact field each channel needs; in-app needs none
CONTACT_FIELDS: dict[Channel, Optional[str]] = {
    Channel.EMAIL: "email",
    Channel.SMS: "phone",
    Channel.PUSH: "device_token",
    Channel.WEBHOOK: "webhook_url",
    Channel.IN_APP: None,
}


@dataclass
class NotificationContext:
    notification: Notification
    preference: NotificationPreference
    quiet: bool
    breakers: BreakerRegistry


def check_not_opted_out(profile: ChannelProfile, ctx: NotificationContext) -> RuleResult:
    opted_out = profile.channel in ctx.preference.opted_out
    return RuleResult(
        passed=not opted_out,
        rule_name="opt_out",
        message="User opted out" if opted_out else "Not opted out",
    )


def check_user_channels(profile: ChannelProfile, ctx: NotificationContext) -> RuleResult:
    allowed = ctx.preference.channels
    passed = not allowed or profile.channel in allowed
    return RuleResult(
        passed=passed,
        rule_name="user_channels",
        message="Channel allowed" if passed else "Channel not in user's channel list",
    )


def check_contact(profile: ChannelProfile, ctx: NotificationContext) -> RuleResult:
    field_name = CONTACT_FIELDS[profile.channel]
    passed = field_name is None or bool(getattr(ctx.preference.contacts, field_name))
    return RuleResult(
        passed=passed,
        rule_name="contact",
        message="Contact available" if passed else f"No {field_name} on file",
    )


def check_quiet_hours(profile: ChannelProfile, ctx: NotificationContext) -> RuleResult:
    suppressed = (
        ctx.quiet
        and ctx.notification.priority != Priority.CRITICAL
        and profile.channel != Channel.IN_APP
    )
    return RuleResult(
        passed=not suppressed,
        rule_name="quiet_hours",
        message=QUIET_HOURS_MESSAGE if suppressed else "Outside quiet hours or exempt",
    )


def check_circuit(profile: ChannelProfile, ctx: NotificationContext) -> RuleResult:
    is_open = ctx.breakers.is_open(profile.name)
    return RuleResult(
        passed=not is_open,
        rule_name="circuit",
        message="Circuit open" if is_open else "Circuit closed",
    )


CHANNEL_RULES = (
    check_enabled,
    check_not_opted_out,
    check_user_channels,
    check_contact,
    check_quiet_hours,
    check_circuit,
)
