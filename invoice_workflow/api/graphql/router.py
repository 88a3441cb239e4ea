from fastapi import Depends
from sqlalchemy.orm import Session
from strawberry.fastapi import GraphQLRouter

from invoice_workflow.api.dependencies import get_payment_service
from invoice_workflow.api.graphql.schema import schema
from invoice_workflow.core.database import get_db
from invoice_workflow.services.payment_service import PaymentService


def get_context(
    db: Session = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return {"db": db, "payment_service": payment_service}


graphql_router = GraphQLRouter(schema, context_getter=get_context)
