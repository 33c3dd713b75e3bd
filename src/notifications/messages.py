"""
Participant-facing chat message text.
"""

from typing import Optional

SYSTEM_ERROR_MESSAGE = (
    "⚠️ Something went wrong while recording your submission. Nothing was saved; "
    "please try again in a few minutes."
)


def _feedback_line(feedback: Optional[str], default: str, label: str = "Feedback") -> str:
    return f'💬 *{label}:* _"{feedback or default}"_'


def advanced(first_name: str, new_stage: int, progress: int, feedback: Optional[str]) -> str:
    return (
        f"🎉 *Congratulations {first_name}!* Your submission was accepted.\n"
        f"🚀 You have advanced to *Stage {new_stage}* ({progress}% complete).\n"
        + _feedback_line(feedback, "Keep up the great momentum!")
    )


def completed(
    first_name: str,
    track: str,
    feedback: Optional[str],
    paid: bool,
    certificate_issued: bool,
) -> str:
    text = (
        f"🎓 *CONGRATULATIONS {first_name}!* 🎉\n\n"
        f"Your final project was approved. You have officially completed the {track} program!\n"
        + _feedback_line(feedback, "Outstanding work on your final project!")
    )
    if paid and certificate_issued:
        text += "\n\n💎 *Premium Benefit:* Your verified certificate has been generated and sent to your email!"
    elif not paid:
        text += "\n\n👏 You've completed the Free track! Upgrade in the next cohort to earn a verified certificate."
    return text


def needs_revision(first_name: str, stage: int, feedback: Optional[str]) -> str:
    return (
        f"📝 *Revision Required for {first_name}:*\n"
        f"Your Stage {stage} submission needs some tweaks.\n"
        + _feedback_line(feedback, "Please review the stage requirements and resubmit.")
    )


def rejected(first_name: str, stage: int, feedback: Optional[str]) -> str:
    return (
        f"❌ *Submission not accepted, {first_name}.*\n"
        f"Your Stage {stage} submission was rejected.\n"
        + _feedback_line(feedback, "Please review the stage requirements and resubmit.")
    )


def queued_for_review(first_name: str, stage: int) -> str:
    return (
        f"📥 Thanks {first_name}! Your Stage {stage} submission has been queued for "
        "manual review. A mentor will get back to you soon."
    )


def review_updated(first_name: str, stage: int, status: str, feedback: Optional[str]) -> str:
    """Verdict on a submission that no longer matches the current stage."""
    return (
        f"ℹ️ {first_name}, your earlier Stage {stage} submission was marked *{status}*.\n"
        + _feedback_line(feedback, "No additional feedback.")
    )


def stage_moved(first_name: str, audited_stage: int, current_stage: int, status: str) -> str:
    """Audit finished after the application had already left the audited stage."""
    return (
        f"ℹ️ {first_name}, your Stage {audited_stage} submission was marked *{status}*, "
        f"but you're now on *Stage {current_stage}*, so your progress was not changed.\n"
        f"Submit your Stage {current_stage} project when it's ready."
    )
