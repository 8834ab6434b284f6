import graphene
from tracking.schema import Query as TrackingQuery, Mutation as TrackingMutation


class Query(TrackingQuery, graphene.ObjectType):
    ping = graphene.String(default_value="pong")


class Mutation(TrackingMutation, graphene.ObjectType):
    pass

schema = graphene.Schema(query=Query, mutation=Mutation)
