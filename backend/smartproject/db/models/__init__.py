# import all models so Base.metadata sees every table
from smartproject.db.models.project import Project
from smartproject.db.models.wbs import WbsItem, WbsType
from smartproject.db.models.dependency import Dependency, DependencyType
from smartproject.db.models.cost_entry import CostEntry
from smartproject.db.models.task import Task
