"""Default roster of office positions, in display order."""

from __future__ import annotations

from ..leaders.model import Leader

DEFAULT_ROSTER: tuple[Leader, ...] = tuple(
    Leader(leader_id=leader_id, role=role, order=i)
    for i, (leader_id, role) in enumerate(
        [
            ("pres", "President"),
            ("vp", "Vice President"),
            ("spt", "Senator Pro Tempore"),
            ("atg", "Attorney General"),
            ("treas", "Treasurer"),
            ("ag", "Agriculture Senator"),
            ("bus", "Business Senator"),
            ("ceis", "CEIS Senator"),
            ("class", "CLASS Senator"),
            ("cchm", "CCHM Senator"),
            ("eng", "Engineering Senator"),
            ("env", "Environmental Design Senator"),
            ("sci", "Science Senator"),
            ("rsa", "RSA Senator"),
            ("sic", "SIC Senator"),
            ("mcc", "MCC Senator"),
            ("greek", "Greek Senator"),
            ("bn", "Secretary of Basic Needs"),
            ("ext", "Secretary of External Affairs"),
            ("adv", "Officer of Advocacy"),
            ("ia", "Officer of Internal Affairs"),
            ("pr", "Officer of Public Relations"),
            ("sus", "Officer of Sustainability"),
        ],
        start=1,
    )
)
