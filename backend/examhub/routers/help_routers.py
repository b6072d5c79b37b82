from fastapi import APIRouter, Depends, status
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..models.help_model import Faq, Guide, HelpVideo, SupportTicket
from ..models.user_model import User
from ..schemas.help_schema import FaqRead, GuideRead, HelpVideoRead, TicketCreate, TicketRead
from ..security import current_active_user

router = APIRouter(prefix="/help", tags=["Help"], dependencies=[Depends(current_active_user)])


@router.get("/faqs", response_model=List[FaqRead])
async def get_faqs(session: AsyncSession = Depends(get_async_session)):
    res = await session.execute(select(Faq).order_by(Faq.faq_id))
    return res.scalars().all()


@router.get("/guides", response_model=List[GuideRead])
async def get_guides(session: AsyncSession = Depends(get_async_session)):
    res = await session.execute(select(Guide).order_by(Guide.guide_id))
    return res.scalars().all()


@router.get("/videos", response_model=List[HelpVideoRead])
async def get_videos(session: AsyncSession = Depends(get_async_session)):
    res = await session.execute(select(HelpVideo).order_by(HelpVideo.video_id))
    return res.scalars().all()


@router.post("/tickets", response_model=TicketRead, status_code=status.HTTP_201_CREATED)
async def submit_ticket(
    payload: TicketCreate,
    user: User = Depends(current_active_user),
    session: AsyncSession = Depends(get_async_session),
):
    ticket = SupportTicket(user_id=user.id, issue_type=payload.issue_type, description=payload.description, status="open")
    session.add(ticket)
    await session.commit()
    return {
        "ticket_id": ticket.ticket_id,
        "issue_type": ticket.issue_type,
        "description": ticket.description,
        "status": ticket.status,
    }
