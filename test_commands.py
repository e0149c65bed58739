# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for command parsing and the command dispatcher: text and button
parsing, routing, error rendering and reply buttons.
"""

import pytest

from chorebot.core.config import settings
from chorebot.core.dependencies import build_engine, seed_engine
from chorebot.models.domain import PunishmentStatus
from chorebot.services import formatting
from chorebot.services.commands import (
    CommandKind,
    MUTATING_KINDS,
    parse_button,
    parse_command,
)

ADMIN = "boss"


# ============================================
# Fixtures
# ============================================
@pytest.fixture
def engine():
    eng = build_engine()
    seed_engine(eng)
    return eng


@pytest.fixture
def staffed(engine):
    """Engine with an admin and the three members authorized, via chat commands."""
    send(engine, ADMIN, "addadmin @boss")
    for member_id in ("eden", "adele", "emma"):
        send(engine, ADMIN, f"authorize @{member_id}")
    return engine


def send(eng, caller_id, text, display_name=""):
    return eng.dispatcher.handle_message(caller_id, display_name, text)


def tokens(reply):
    return [b.token for b in reply.buttons]


# ============================================
# Text parsing
# ============================================
class TestParseCommand:
    @pytest.mark.parametrize("text", ["hello there", "", "   ", "doner kebab?"])
    def test_plain_chatter_is_ignored(self, text):
        assert parse_command(text) is None

    def test_marked_unknown(self):
        command = parse_command("/dance now")
        assert command.kind == CommandKind.UNKNOWN
        assert command.args == ("now",)

    def test_bare_marker_is_unknown(self):
        assert parse_command("/").kind == CommandKind.UNKNOWN

    @pytest.mark.parametrize("text,kind", [
        ("done", CommandKind.DONE),
        ("/done", CommandKind.DONE),
        ("DONE", CommandKind.DONE),
        ("/done@ChoreBot", CommandKind.DONE),
        ("status", CommandKind.STATUS),
        ("queue", CommandKind.STATUS),
        ("help", CommandKind.HELP),
        ("commands", CommandKind.HELP),
        ("helphelp", CommandKind.DETAILED_HELP),
        ("punishment", CommandKind.PUNISHMENTS),
        ("punishments stats", CommandKind.PUNISHMENT_STATS),
        ("skip", CommandKind.SKIP),
    ])
    def test_command_words(self, text, kind):
        assert parse_command(text).kind == kind

    def test_approve_defaults_to_swap(self):
        command = parse_command("approve 2")
        assert command.kind == CommandKind.APPROVE_SWAP
        assert command.args == ("2",)

    @pytest.mark.parametrize("text,kind", [
        ("approve punishment 3", CommandKind.APPROVE_PUNISHMENT),
        ("Reject Punishment 3", CommandKind.REJECT_PUNISHMENT),
        ("approve skip eden", CommandKind.APPROVE_SKIP),
        ("reject skip eden", CommandKind.REJECT_SKIP),
    ])
    def test_decisions_consume_qualifier(self, text, kind):
        command = parse_command(text)
        assert command.kind == kind
        assert len(command.args) == 1

    def test_args_preserved(self):
        command = parse_command("punish @emma +3 left dishes")
        assert command.args == ("@emma", "+3", "left", "dishes")

    def test_mutating_flag(self):
        assert parse_command("done").mutating
        assert not parse_command("status").mutating
        assert CommandKind.UNKNOWN not in MUTATING_KINDS


class TestParseButton:
    @pytest.mark.parametrize("token,kind,args", [
        ("status", CommandKind.STATUS, ()),
        ("done", CommandKind.DONE, ()),
        ("swap_approve_4", CommandKind.APPROVE_SWAP, ("4",)),
        ("swap_reject_4", CommandKind.REJECT_SWAP, ("4",)),
        ("punishment_approve_1", CommandKind.APPROVE_PUNISHMENT, ("1",)),
        ("punishment_reject_1", CommandKind.REJECT_PUNISHMENT, ("1",)),
        ("skip_approve_eden", CommandKind.APPROVE_SKIP, ("eden",)),
        ("skip_reject_eden", CommandKind.REJECT_SKIP, ("eden",)),
        ("punishment_apply_emma", CommandKind.APPLY_PUNISHMENT, ("emma",)),
        ("apply_punishment_menu", CommandKind.APPLY_PUNISHMENT, ()),
    ])
    def test_tokens(self, token, kind, args):
        command = parse_button(token)
        assert command.kind == kind
        assert command.args == args

    @pytest.mark.parametrize("token", ["bogus", "swap_approve_", ""])
    def test_unknown_tokens(self, token):
        assert parse_button(token).kind == CommandKind.UNKNOWN


# ============================================
# Dispatcher
# ============================================
class TestDispatcherRouting:
    def test_every_kind_has_handler(self, engine):
        assert set(engine.dispatcher._handlers) == set(CommandKind)

    def test_chatter_returns_none(self, engine):
        assert send(engine, "eden", "good morning") is None

    def test_unknown_command_reply(self, engine):
        reply = send(engine, "eden", "/dance")
        assert reply.text == formatting.UNKNOWN_TEXT
        assert reply.mutated is False

    def test_help(self, engine):
        assert send(engine, "anyone", "help").text == formatting.HELP_TEXT
        assert send(engine, "anyone", "/helphelp").text == formatting.DETAILED_HELP_TEXT

    def test_status_has_buttons(self, engine):
        reply = send(engine, "anyone", "status")
        assert "🔄 1. Eden Aronov - **CURRENT TURN**" in reply.text
        assert "👥 **Authorized Users:** 0/3" in reply.text
        assert tokens(reply) == ["done", "status"]

    def test_status_button(self, engine):
        reply = engine.dispatcher.handle_button("anyone", "", "status")
        assert "📋 **Rotation Status:**" in reply.text


class TestDispatcherErrors:
    def test_unauthorized_done(self, engine):
        reply = send(engine, "eden", "done")
        assert reply.text == "❌ You are not authorized to use rotation commands"
        assert reply.mutated is False
        assert engine.rotation.current_index == 0

    def test_not_your_turn(self, staffed):
        reply = send(staffed, "adele", "done")
        assert reply.text == "❌ It's not your turn! Current turn: Eden Aronov"

    def test_missing_arguments(self, staffed):
        assert send(staffed, "eden", "swap").text == "❌ Usage: swap @username"

    def test_bad_request_id(self, staffed):
        assert send(staffed, "adele", "approve abc").text == "❌ Invalid request ID"

    def test_bad_history_limit(self, staffed):
        assert send(staffed, "anyone", "punishments abc").text == "❌ Usage: punishments [limit]"
        assert send(staffed, "anyone", "punishments 0").text == "❌ Limit must be a positive number"

    def test_stale_swap_left_alone_for_outsiders(self, staffed):
        send(staffed, "eden", "swap @emma")
        send(staffed, ADMIN, "removemember emma")
        reply = send(staffed, "random-stranger", "approve 1")
        assert reply.text == "❌ Only Emma Aronov can answer swap request #1"
        assert reply.mutated is False
        assert [r.id for r in staffed.swaps.pending()] == [1]

    def test_dropping_stale_swap_marks_reply_mutated(self, staffed):
        send(staffed, "eden", "swap @emma")
        send(staffed, ADMIN, "removemember emma")
        reply = send(staffed, "eden", "approve 1")
        assert reply.text.startswith("❌ Swap request #1 is stale")
        assert reply.mutated is True
        assert staffed.swaps.pending() == []

    def test_dropping_stale_skip_marks_reply_mutated(self, staffed):
        send(staffed, "eden", "skip")
        send(staffed, ADMIN, "forceswap eden emma")
        reply = send(staffed, ADMIN, "approve skip eden")
        assert reply.text.startswith("❌ Skip request for Eden Aronov is no longer valid")
        assert reply.mutated is True

    def test_turns_need_plus(self, staffed):
        reply = send(staffed, "eden", "punish @emma 3 late")
        assert reply.text == "❌ Turns must be specified as +number (e.g. +3)"

    def test_punish_unknown_member(self, staffed):
        reply = send(staffed, "eden", "punish @bob +1 late")
        assert reply.text.startswith("❌ ")
        assert staffed.punishments.stats()["total"] == 0

    def test_capacity_reply(self, staffed):
        reply = send(staffed, ADMIN, "authorize @dad")
        assert reply.text == "❌ Maximum of 3 authorized users allowed"


class TestDispatcherAdmin:
    def test_first_admin_bootstrap(self, engine):
        reply = send(engine, "stranger", "addadmin @boss")
        assert reply.text == "✅ boss added as admin!"
        assert reply.mutated is True

    def test_second_admin_needs_admin(self, engine):
        send(engine, "stranger", "addadmin @boss")
        reply = send(engine, "stranger", "addadmin @stranger")
        assert reply.text == "❌ Only admins can do that"
        assert engine.gate.admins() == ["boss"]

    def test_authorize_requires_admin(self, engine):
        reply = send(engine, "eden", "authorize @eden")
        assert reply.text == "❌ Only admins can do that"

    def test_authorize_with_member_links_alias(self, staffed):
        send(staffed, ADMIN, "unauthorize @emma")
        reply = send(staffed, ADMIN, "authorize @+972500000000 Emma")
        assert "acts as Emma Aronov" in reply.text
        assert staffed.identity.resolve("+972500000000") == "Emma Aronov"

    def test_users_lists_aliases(self, staffed):
        send(staffed, ADMIN, "link +15550001 adele")
        text = send(staffed, "anyone", "users").text
        assert "👥 **Authorized Users (3/3):**" in text
        assert "• +15550001 → Adele Aronov" in text

    def test_unlink(self, staffed):
        send(staffed, ADMIN, "link +15550001 adele")
        assert send(staffed, ADMIN, "unlink +15550001").text == "✅ +15550001 unlinked."
        assert send(staffed, ADMIN, "unlink +15550001").text == "ℹ️ +15550001 was not linked."

    def test_admins_listing(self, staffed):
        assert send(staffed, "anyone", "admins").text == "👨‍💼 **Admins:**\n• boss"

    def test_member_management(self, staffed):
        send(staffed, ADMIN, "addmember noa Noa Aronov")
        assert [m.id for m in staffed.rotation.members()][-1] == "noa"
        reply = send(staffed, ADMIN, "removemember Noa")
        assert reply.text.startswith("✅ Noa Aronov removed from the rotation.")

    def test_force_swap(self, staffed):
        reply = send(staffed, ADMIN, "forceswap eden emma")
        assert "⚡ **Admin Force Swap Executed!**" in reply.text
        assert "1. Emma Aronov (CURRENT TURN)" in reply.text

    def test_purge(self, staffed):
        assert send(staffed, ADMIN, "purge 30").text == "🧹 Purged 0 decided punishment request(s)."
        assert send(staffed, "eden", "purge").text == "❌ Only admins can do that"
        assert send(staffed, ADMIN, "purge soon").text == "❌ Usage: purge [days]"


class TestDispatcherFlows:
    def test_done_flow(self, staffed):
        reply = send(staffed, "eden", "/done")
        assert reply.text == "✅ Eden Aronov completed their turn!\n\n🔄 Next turn: Adele Aronov"
        assert reply.mutated is True

    def test_swap_flow_with_buttons(self, staffed):
        reply = send(staffed, "eden", "swap @adele")
        assert tokens(reply) == ["swap_approve_1", "swap_reject_1"]

        approved = staffed.dispatcher.handle_button("adele", "Adele", "swap_approve_1")
        assert approved.text == (
            "✅ Swap approved! Eden Aronov and Adele Aronov have swapped positions."
        )
        assert [m.id for m in staffed.rotation.members()] == ["adele", "eden", "emma"]

    def test_swap_self_approval_refused(self, staffed):
        send(staffed, "eden", "swap @adele")
        reply = send(staffed, "eden", "approve 1")
        assert reply.text == "❌ Only Adele Aronov can answer swap request #1"

    def test_punishment_rejected_scenario(self, staffed):
        submitted = send(staffed, "eden", "punish @emma +3 late")
        assert "⚡ **Punishment Request #1**" in submitted.text
        assert tokens(submitted) == ["punishment_approve_1", "punishment_reject_1"]

        rejected = send(staffed, ADMIN, "reject punishment 1")
        assert "❌ **Punishment Request #1 REJECTED**" in rejected.text

        stats = send(staffed, "anyone", "punishments stats").text
        assert "📋 Total Requests: 1" in stats
        assert "⏳ Pending: 0" in stats
        assert "✅ Approved: 0" in stats
        assert "❌ Rejected: 1" in stats

    def test_punishment_approved_reports_owed(self, staffed):
        send(staffed, "eden", "punish @emma +2 late")
        reply = staffed.dispatcher.handle_button(ADMIN, "", "punishment_approve_1")
        assert "Emma Aronov now owes 2 extra turns!" in reply.text
        again = send(staffed, ADMIN, "approve punishment 1")
        assert again.text == "❌ Punishment request #1 was already approved"

    def test_punishment_history(self, staffed):
        assert send(staffed, "anyone", "punishments").text == "📋 No punishment requests found."
        send(staffed, "eden", "punish @emma +1 late")
        send(staffed, "eden", "punish @adele +2 noisy")
        text = send(staffed, "anyone", "punishments").text
        assert text.index("#2") < text.index("#1")

    def test_skip_flow(self, staffed):
        reply = send(staffed, "eden", "skip sick today")
        assert tokens(reply) == ["skip_approve_eden", "skip_reject_eden"]
        assert "📝 Reason: sick today" in reply.text

        status = send(staffed, "anyone", "status").text
        assert "⏭️ **Pending Skip Requests:**" in status

        approved = staffed.dispatcher.handle_button(ADMIN, "", "skip_approve_eden")
        assert approved.text.endswith("🔄 Next turn: Adele Aronov")

    def test_status_shows_owed_and_swaps(self, staffed):
        staffed.rotation.add_owed_turns("emma", 1)
        send(staffed, "eden", "swap @adele")
        text = send(staffed, "anyone", "status").text
        assert "• Emma Aronov: 1 punishment turn remaining" in text
        assert "• #1: Eden Aronov ↔ Adele Aronov" in text


class TestAdminPunishment:
    def test_parsed_as_own_kind(self):
        command = parse_command("applypunishment @emma +2 late")
        assert command.kind == CommandKind.APPLY_PUNISHMENT
        assert command.args == ("@emma", "+2", "late")
        assert command.mutating

    def test_applied_without_approval_step(self, staffed):
        reply = send(staffed, ADMIN, "applypunishment @emma +2 left dishes")
        assert "⚡ **PUNISHMENT APPLIED!** (#1)" in reply.text
        assert "👨‍💼 Applied by: boss" in reply.text
        assert "Emma Aronov now owes 2 extra turns." in reply.text
        assert reply.mutated is True

        request = staffed.punishments.get(1)
        assert request.status == PunishmentStatus.APPROVED
        assert request.submitter == ADMIN
        assert request.decided_by == ADMIN
        assert request.reason == "left dishes"
        assert staffed.rotation.owed_turns("emma") == 2
        assert staffed.punishments.stats()["approved"] == 1
        assert staffed.punishments.stats()["pending"] == 0

    def test_defaults_turns_and_reason(self, staffed):
        send(staffed, ADMIN, "applypunishment adele")
        request = staffed.punishments.get(1)
        assert request.turns == settings.PUNISHMENT_DEFAULT_TURNS
        assert request.reason == "Applied by admin"

    def test_non_admin_refused(self, staffed):
        reply = send(staffed, "eden", "applypunishment @emma +2 late")
        assert reply.text == "❌ Only admins can do that"
        assert staffed.punishments.stats()["total"] == 0

    def test_turn_bounds_still_apply(self, staffed):
        reply = send(staffed, ADMIN, "applypunishment @emma +99 late")
        assert reply.text == "❌ Turns must be between 1 and 10"
        assert staffed.punishments.stats()["total"] == 0

    def test_menu_then_member_button(self, staffed):
        menu = staffed.dispatcher.handle_button(ADMIN, "", "apply_punishment_menu")
        assert tokens(menu) == [
            "punishment_apply_eden",
            "punishment_apply_adele",
            "punishment_apply_emma",
        ]
        staffed.dispatcher.handle_button(ADMIN, "", "punishment_apply_adele")
        assert staffed.rotation.owed_turns("adele") == settings.PUNISHMENT_DEFAULT_TURNS
