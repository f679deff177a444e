# bids/services.py
"""
Bid Entity Manager and Acceptance Orchestrator.

Every write that can race with another bid on the same project locks the
project row first (select_for_update), and status changes are conditional
updates keyed on the expected current status.
"""
import logging
from decimal import Decimal

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext, gettext_lazy as _

from core import sanitizers
from core.exceptions import Conflict, InvalidState, NotFound, ValidationError
from core.policies import authorize, can, is_staff
from moderation.services import ModerationService
from notifications.models import Notification
from notifications.services import notify
from projects import state_machine
from projects.models import Project

from .models import Bid

logger = logging.getLogger("market.bids")

MAX_PROPOSAL_LENGTH = 5000
MAX_MILESTONES = 20


def clean_bid_fields(data: dict, partial: bool = False) -> dict:
    """
    Validate proposal / price / delivery_days / milestones, collecting every
    violation into a single ValidationError.
    """
    errors = {}
    cleaned = {}

    def add(name, message):
        errors.setdefault(name, []).append(str(message))

    if not partial or "proposal" in data:
        proposal = sanitizers.sanitize_text(data.get("proposal"), max_length=MAX_PROPOSAL_LENGTH)
        if not proposal:
            add("proposal", _("Proposal is required."))
        cleaned["proposal"] = proposal

    if not partial or "price" in data:
        try:
            cleaned["price"] = sanitizers.validate_amount(data.get("price"), min_value=Decimal("1"))
        except sanitizers.InvalidValue as e:
            add("price", e)

    if not partial or "delivery_days" in data:
        try:
            cleaned["delivery_days"] = sanitizers.validate_int(data.get("delivery_days"), min_value=1, max_value=365)
        except sanitizers.InvalidValue as e:
            add("delivery_days", e)

    if "milestones" in data:
        milestones = data.get("milestones") or []
        if not isinstance(milestones, list) or len(milestones) > MAX_MILESTONES:
            add("milestones", _("Milestones must be a list of at most %(n)d items.") % {"n": MAX_MILESTONES})
        else:
            result = []
            for i, item in enumerate(milestones, start=1):
                if not isinstance(item, dict):
                    add("milestones", _("Milestone %(i)d is malformed.") % {"i": i})
                    continue
                title = sanitizers.sanitize_title(item.get("title"))
                if not title:
                    add("milestones", _("Milestone %(i)d needs a title.") % {"i": i})
                try:
                    days = sanitizers.validate_int(item.get("days"), min_value=1, max_value=365)
                    price = sanitizers.validate_amount(item.get("price", 0))
                except sanitizers.InvalidValue as e:
                    add("milestones", f"{i}: {e}")
                    continue
                result.append({
                    "title": title,
                    "description": sanitizers.sanitize_text(item.get("description"), max_length=1000),
                    "days": days,
                    "price": str(price),
                })
            cleaned["milestones"] = result

    if errors:
        raise ValidationError(errors)
    return cleaned


class BidService:
    def __init__(self, moderation=None):
        self.moderation = moderation or ModerationService()

    def _moderate_proposal(self, proposal) -> int:
        verdict = self.moderation.ensure_publishable({"proposal": (proposal, True)})
        return verdict["score"]

    def submit_bid(self, project_id, freelancer, proposal, price, delivery_days, milestones=None) -> Bid:
        data = {"proposal": proposal, "price": price, "delivery_days": delivery_days}
        if milestones is not None:
            data["milestones"] = milestones
        cleaned = clean_bid_fields(data)

        with transaction.atomic():
            project = (
                Project.objects.select_for_update()
                .exclude(status=Project.STATUS_DELETED)
                .filter(pk=project_id)
                .first()
            )
            if project is None:
                raise NotFound(_("Project not found."))

            if not state_machine.is_open_for_bids(project):
                raise InvalidState(_("This project is not accepting bids."))

            authorize(freelancer, "bid.submit", project)

            if Bid.objects.filter(project=project, freelancer=freelancer).exclude(status=Bid.STATUS_WITHDRAWN).exists():
                raise Conflict(_("You have already placed a bid on this project."))

            cleaned["moderation_score"] = self._moderate_proposal(cleaned["proposal"])

            try:
                with transaction.atomic():
                    bid = Bid.objects.create(project=project, freelancer=freelancer, **cleaned)
            except IntegrityError:
                raise Conflict(_("You have already placed a bid on this project."))

            Project.objects.filter(pk=project.pk).update(proposals_count=F("proposals_count") + 1)

            client = project.client
            transaction.on_commit(lambda: notify(
                client,
                Notification.TYPE_BID_RECEIVED,
                gettext("New bid on your project"),
                gettext("%(name)s offered %(price)s for “%(title)s”.") % {
                    "name": freelancer.username, "price": bid.price, "title": project.title,
                },
                project=project,
                bid=bid,
            ))

        logger.info(f"Bid submitted: bid={bid.id}, project={project.id}, freelancer={freelancer.id}")
        return bid

    def list_bids(self, project_id, actor, status=None):
        project = Project.objects.exclude(status=Project.STATUS_DELETED).filter(pk=project_id).first()
        if project is None:
            raise NotFound(_("Project not found."))

        qs = Bid.objects.filter(project=project).select_related("freelancer", "project")
        if not (project.client_id == actor.id or is_staff(actor)):
            qs = qs.filter(freelancer=actor)

        if status:
            if status not in dict(Bid.STATUS_CHOICES):
                raise ValidationError({"status": [str(_("Unknown bid status."))]})
            qs = qs.filter(status=status)

        return qs.order_by("-created_at", "-id")

    def list_mine(self, actor, status=None):
        qs = Bid.objects.filter(freelancer=actor).select_related("project", "freelancer")
        if status:
            qs = qs.filter(status=status)
        return qs.order_by("-created_at", "-id")

    def get_bid(self, bid_id, actor) -> Bid:
        bid = Bid.objects.select_related("project", "freelancer").filter(pk=bid_id).first()
        if bid is None or not can(actor, "bid.view", bid):
            raise NotFound(_("Bid not found."))
        return bid

    def update_bid(self, bid_id, actor, data: dict) -> Bid:
        """
        `data` holds either {"status": "rejected" | "withdrawn"} or field edits
        (proposal, price, delivery_days, milestones). Only pending bids change.
        """
        new_status = data.get("status")
        edits = {k: v for k, v in data.items() if k != "status"}
        if new_status and edits:
            raise ValidationError({"status": [str(_("Change the status or the fields, not both."))]})

        with transaction.atomic():
            bid = Bid.objects.select_for_update().select_related("project").filter(pk=bid_id).first()
            if bid is None or not can(actor, "bid.view", bid):
                raise NotFound(_("Bid not found."))

            if not bid.is_pending:
                raise InvalidState(_("Only pending bids can be changed."))

            if new_status:
                return self._change_status(bid, actor, new_status)

            authorize(actor, "bid.edit", bid)
            cleaned = clean_bid_fields(edits, partial=True)
            if "proposal" in cleaned and cleaned["proposal"] != bid.proposal:
                cleaned["moderation_score"] = self._moderate_proposal(cleaned["proposal"])
            for name, value in cleaned.items():
                setattr(bid, name, value)
            bid.save()

        logger.info(f"Bid edited: bid={bid.id}, fields={sorted(cleaned)}")
        return bid

    def _change_status(self, bid: Bid, actor, new_status) -> Bid:
        if new_status == Bid.STATUS_ACCEPTED:
            raise InvalidState(_("Bids are accepted through the accept endpoint."))

        if new_status == Bid.STATUS_REJECTED:
            authorize(actor, "bid.reject", bid)
        elif new_status == Bid.STATUS_WITHDRAWN:
            authorize(actor, "bid.withdraw", bid)
        else:
            raise ValidationError({"status": [str(_("Status must be rejected or withdrawn."))]})

        updated = Bid.objects.filter(pk=bid.pk, status=Bid.STATUS_PENDING).update(
            status=new_status, updated_at=timezone.now()
        )
        if not updated:
            raise Conflict()

        if new_status == Bid.STATUS_WITHDRAWN:
            Project.objects.filter(pk=bid.project_id, proposals_count__gt=0).update(
                proposals_count=F("proposals_count") - 1
            )
        else:
            freelancer = bid.freelancer
            transaction.on_commit(lambda: notify(
                freelancer,
                Notification.TYPE_BID_REJECTED,
                gettext("Your bid was declined"),
                gettext("The client declined your bid on “%(title)s”.") % {"title": bid.project.title},
                project=bid.project,
                bid=bid,
            ))

        bid.refresh_from_db()
        logger.info(f"Bid status changed: bid={bid.id}, to={new_status}, actor={actor.id}")
        return bid


class AcceptanceService:
    """
    accept_bid() runs in one transaction with the project row locked:

    1. bid -> accepted          (conditional on bid still pending)
    2. other pending bids -> rejected
    3. project -> in_progress   (conditional on project still published)

    A conditional update that matches nothing raises Conflict, which rolls
    the whole transaction back.
    """

    def accept_bid(self, bid_id, actor):
        with transaction.atomic():
            bid = Bid.objects.filter(pk=bid_id).only("id", "project_id").first()
            if bid is None:
                raise NotFound(_("Bid not found."))

            project = Project.objects.select_for_update().get(pk=bid.project_id)
            bid = Bid.objects.select_related("freelancer", "project").get(pk=bid_id)

            if not bid.is_pending:
                raise InvalidState(_("Only a pending bid can be accepted."))
            if project.status != Project.STATUS_PUBLISHED:
                raise InvalidState(_("The project is not open for bids."))

            authorize(actor, "bid.accept", bid)

            now = timezone.now()
            self._accept(bid, now)
            rejected = self._reject_others(bid, now)
            self._start_project(project, bid, now)

            bid.refresh_from_db()
            project.refresh_from_db()
            transaction.on_commit(lambda: self._after_commit(project, bid, rejected))

        logger.info(
            f"Bid accepted: bid={bid.id}, project={project.id}, "
            f"freelancer={bid.freelancer_id}, rejected={[b.id for b in rejected]}"
        )
        return project, bid

    def _accept(self, bid, now):
        try:
            with transaction.atomic():
                updated = Bid.objects.filter(pk=bid.pk, status=Bid.STATUS_PENDING).update(
                    status=Bid.STATUS_ACCEPTED, accepted_at=now, updated_at=now
                )
        except IntegrityError:
            # unique_accepted_bid_per_project
            raise Conflict(_("Another bid has already been accepted for this project."))
        if not updated:
            raise Conflict()

    def _reject_others(self, bid, now):
        others = list(
            Bid.objects.filter(project_id=bid.project_id, status=Bid.STATUS_PENDING)
            .exclude(pk=bid.pk)
            .select_related("freelancer")
        )
        if others:
            Bid.objects.filter(pk__in=[b.pk for b in others], status=Bid.STATUS_PENDING).update(
                status=Bid.STATUS_REJECTED, updated_at=now
            )
        return others

    def _start_project(self, project, bid, now):
        updated = Project.objects.filter(pk=project.pk, status=Project.STATUS_PUBLISHED).update(
            status=Project.STATUS_IN_PROGRESS,
            freelancer_id=bid.freelancer_id,
            updated_at=now,
        )
        if not updated:
            raise Conflict()

    def _after_commit(self, project, bid, rejected):
        from chat.services import ChatService

        notify(
            bid.freelancer,
            Notification.TYPE_BID_ACCEPTED,
            gettext("Your bid was accepted"),
            gettext("The client accepted your bid on “%(title)s”.") % {"title": project.title},
            project=project,
            bid=bid,
        )
        for other in rejected:
            notify(
                other.freelancer,
                Notification.TYPE_BID_REJECTED,
                gettext("Your bid was declined"),
                gettext("The client chose another freelancer for “%(title)s”.") % {"title": project.title},
                project=project,
                bid=other,
            )

        try:
            ChatService().open_bid_thread(bid, project.client)
        except DatabaseError as e:
            logger.error(f"Could not open chat thread for bid={bid.id}: {e}")
