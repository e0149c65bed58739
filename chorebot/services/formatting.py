# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Reply formatting.
Renders engine results as Markdown chat text. Pure functions of their
inputs, so rendering a restored state reproduces the original output.
"""

from typing import Any, Optional

from chorebot.models.domain import (
    EngineState,
    PunishmentRequest,
    PunishmentStatus,
    RotationMember,
    SkipRequest,
    SwapRequest,
)
from chorebot.services.rotation_service import TurnOutcome

_STATUS_ICONS: dict[PunishmentStatus, str] = {
    PunishmentStatus.PENDING: "⏳",
    PunishmentStatus.APPROVED: "✅",
    PunishmentStatus.REJECTED: "❌",
}


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _name_of(state: EngineState, member_id: str) -> str:
    for member in state.rotation.members:
        if member.id == member_id:
            return member.display_name
    return member_id


# ── Rotation ──

def render_status(state: EngineState, max_authorized: int) -> str:
    rotation = state.rotation
    if not rotation.members:
        return "🎉 Rotation is empty!"

    lines = ["📋 **Rotation Status:**", ""]
    for index, member in enumerate(rotation.members):
        is_current = index == rotation.current_index
        icon = "🔄" if is_current else "⏳"
        suffix = " - **CURRENT TURN**" if is_current else ""
        lines.append(f"{icon} {index + 1}. {member.display_name}{suffix}")

    lines.append("")
    lines.append(
        f"👥 **Authorized Users:** {len(state.authorized_callers)}/{max_authorized}"
    )

    owed = {mid: turns for mid, turns in rotation.owed_turns.items() if turns > 0}
    if owed:
        lines.append("")
        lines.append("⚡ **Active Punishments:**")
        for member_id, turns in owed.items():
            lines.append(
                f"• {_name_of(state, member_id)}: {_plural(turns, 'punishment turn')} remaining"
            )

    if state.swap_requests:
        lines.append("")
        lines.append("🔄 **Pending Swap Requests:**")
        for request_id in sorted(state.swap_requests):
            request = state.swap_requests[request_id]
            lines.append(
                f"• #{request_id}: {request.requester.display_name} ↔ {request.target.display_name}"
            )

    if state.skip_requests:
        lines.append("")
        lines.append("⏭️ **Pending Skip Requests:**")
        for request in state.skip_requests.values():
            reason = f" ({request.reason})" if request.reason else ""
            lines.append(f"• {request.member.display_name}{reason}")

    return "\n".join(lines)


def render_turn_outcome(outcome: TurnOutcome) -> str:
    text = f"✅ {outcome.completed.display_name} completed their turn!"
    if outcome.punishment_turn:
        text += (
            f"\n⚡ Punishment turn worked off. "
            f"Remaining: {outcome.owed_remaining}"
        )
    if outcome.next_member is not None:
        text += f"\n\n🔄 Next turn: {outcome.next_member.display_name}"
    return text


# ── Swaps ──

def render_swap_proposed(request: SwapRequest) -> str:
    return (
        f"🔄 Swap request #{request.id} created!\n"
        f"{request.requester.display_name} wants to swap positions with "
        f"{request.target.display_name}.\n"
        f"{request.target.display_name}, please respond with "
        f"\"approve {request.id}\" or \"reject {request.id}\"."
    )


def render_swap_approved(request: SwapRequest) -> str:
    return (
        f"✅ Swap approved! {request.requester.display_name} and "
        f"{request.target.display_name} have swapped positions."
    )


def render_swap_rejected(request: SwapRequest) -> str:
    return f"❌ Swap request #{request.id} rejected by {request.target.display_name}."


def render_force_swap(first: RotationMember, second: RotationMember, state: EngineState) -> str:
    order = "\n".join(
        f"{i + 1}. {m.display_name}"
        f"{' (CURRENT TURN)' if i == state.rotation.current_index else ''}"
        for i, m in enumerate(state.rotation.members)
    )
    return (
        f"⚡ **Admin Force Swap Executed!**\n\n"
        f"🔄 **{first.display_name} ↔ {second.display_name}**\n\n"
        f"📋 **New order:**\n{order}"
    )


# ── Skips ──

def render_skip_requested(request: SkipRequest) -> str:
    reason = f"\n📝 Reason: {request.reason}" if request.reason else ""
    return (
        f"⏭️ {request.member.display_name} asked to skip this turn.{reason}\n"
        f"Admins can answer with \"approve skip {request.member.id}\" "
        f"or \"reject skip {request.member.id}\"."
    )


def render_skip_approved(request: SkipRequest, next_member: Optional[RotationMember]) -> str:
    text = f"✅ Skip approved for {request.member.display_name}."
    if next_member is not None:
        text += f"\n\n🔄 Next turn: {next_member.display_name}"
    return text


def render_skip_rejected(request: SkipRequest) -> str:
    return f"❌ Skip request for {request.member.display_name} rejected. It's still your turn!"


# ── Punishments ──

def render_punishment_submitted(request: PunishmentRequest) -> str:
    return (
        f"⚡ **Punishment Request #{request.id}**\n\n"
        f"👤 Target: {request.target_display_name}\n"
        f"➕ Turns: +{request.turns}\n"
        f"📝 Reason: {request.reason}\n"
        f"👨‍💼 Submitted by: {request.submitter}\n\n"
        f"⏳ Waiting for admin approval...\n"
        f"Admins can approve with: \"approve punishment {request.id}\"\n"
        f"Admins can reject with: \"reject punishment {request.id}\""
    )


def render_punishment_decided(request: PunishmentRequest, owed_total: Optional[int] = None) -> str:
    verb = "APPROVED" if request.status == PunishmentStatus.APPROVED else "REJECTED"
    icon = _STATUS_ICONS[request.status]
    text = (
        f"{icon} **Punishment Request #{request.id} {verb}**\n\n"
        f"👤 Target: {request.target_display_name}\n"
        f"➕ Turns: +{request.turns}\n"
        f"📝 Reason: {request.reason}\n"
        f"👨‍💼 {verb.capitalize()} by: {request.decided_by}"
    )
    if owed_total is not None:
        text += (
            f"\n\n⚡ {request.target_display_name} now owes "
            f"{_plural(owed_total, 'extra turn')}!"
        )
    return text


def render_punishment_applied(request: PunishmentRequest, owed_total: int) -> str:
    return (
        f"⚡ **PUNISHMENT APPLIED!** (#{request.id})\n\n"
        f"🎯 Target: {request.target_display_name}\n"
        f"📝 Reason: {request.reason}\n"
        f"👨‍💼 Applied by: {request.decided_by}\n\n"
        f"🚫 +{_plural(request.turns, 'extra turn')} added!\n"
        f"📊 {request.target_display_name} now owes {_plural(owed_total, 'extra turn')}."
    )


def render_punishment_history(requests: list[PunishmentRequest]) -> str:
    if not requests:
        return "📋 No punishment requests found."
    lines = ["📋 **Punishment History:**", ""]
    for request in requests:
        lines.append(
            f"{_STATUS_ICONS[request.status]} **#{request.id}** - "
            f"{request.target_display_name} (+{request.turns})"
        )
        lines.append(f"   📝 {request.reason}")
        lines.append(f"   📅 {request.submitted_at.strftime('%Y-%m-%d')}")
        if request.status == PunishmentStatus.APPROVED:
            lines.append(f"   👨‍💼 Approved by: {request.decided_by}")
        elif request.status == PunishmentStatus.REJECTED:
            lines.append(f"   👨‍💼 Rejected by: {request.decided_by}")
        lines.append("")
    return "\n".join(lines).rstrip()


def render_punishment_stats(stats: dict[str, Any]) -> str:
    return (
        f"📊 **Punishment Statistics:**\n\n"
        f"📋 Total Requests: {stats['total']}\n"
        f"⏳ Pending: {stats['pending']}\n"
        f"✅ Approved: {stats['approved']}\n"
        f"❌ Rejected: {stats['rejected']}\n"
        f"👨‍💼 Admins: {stats['adminCount']}"
    )


# ── Access ──

def render_admins(admins: list[str]) -> str:
    if not admins:
        return "👨‍💼 No admins configured."
    return "👨‍💼 **Admins:**\n" + "\n".join(f"• {admin}" for admin in admins)


def render_users(
    authorized: list[str], max_authorized: int, aliases: dict[str, str], state: EngineState
) -> str:
    lines = [f"👥 **Authorized Users ({len(authorized)}/{max_authorized}):**"]
    if authorized:
        lines.extend(f"• {caller}" for caller in authorized)
    else:
        lines.append("• none")
    if aliases:
        lines.append("")
        lines.append("🔗 **Linked Callers:**")
        lines.extend(
            f"• {caller} → {_name_of(state, member_id)}"
            for caller, member_id in aliases.items()
        )
    return "\n".join(lines)


# ── Help ──

HELP_TEXT = (
    "🤖 **Chore Rotation Bot - Commands**\n\n"
    "📋 **Rotation:**\n"
    "• `done` - Complete your turn\n"
    "• `status` - Show the rotation\n\n"
    "🔄 **Swaps:**\n"
    "• `swap @user` - Request to swap positions\n"
    "• `approve <id>` - Approve a swap request\n"
    "• `reject <id>` - Reject a swap request\n\n"
    "⚡ **Punishment:**\n"
    "• `punish @user +3 reason` - Submit a punishment request\n\n"
    "Type `helphelp` for every command."
)

DETAILED_HELP_TEXT = (
    "🤖 **Chore Rotation Bot - Complete Commands**\n\n"
    "📋 **Rotation:**\n"
    "• `done` - Complete your turn (moves to the next person)\n"
    "• `status` / `queue` - Show the rotation\n\n"
    "🔄 **Turn Flexibility:**\n"
    "• `swap @user` - Request to swap positions\n"
    "• `approve <id>` / `reject <id>` - Answer a swap request\n"
    "• `skip [reason]` - Ask to skip your turn\n\n"
    "⚡ **Punishments:**\n"
    "• `punish @user +3 reason` - Submit a punishment request\n"
    "• `punishments [limit]` - Punishment history\n"
    "• `punishments stats` - Punishment statistics\n\n"
    "👨‍💼 **Admin Commands:**\n"
    "• `addadmin @user` / `removeadmin @user` - Manage admins\n"
    "• `authorize @user [member]` / `unauthorize @user` - Manage rotation users\n"
    "• `link <caller> <member>` / `unlink <caller>` - Map a caller to a member\n"
    "• `addmember <id> <Name>` / `removemember <member>` - Change the rotation\n"
    "• `forceswap <member> <member>` - Swap two members immediately\n"
    "• `approve punishment <id>` / `reject punishment <id>` - Decide punishments\n"
    "• `applypunishment [@user] [+3] [reason]` - Apply a punishment directly\n"
    "• `approve skip <member>` / `reject skip <member>` - Decide skips\n"
    "• `purge [days]` - Drop old decided punishments\n"
    "• `admins` / `users` - List access\n\n"
    "❓ **Help:**\n"
    "• `help` - Basic commands\n"
    "• `helphelp` - This list"
)

UNKNOWN_TEXT = '❌ Unknown command. Type "help" to see available commands.'
