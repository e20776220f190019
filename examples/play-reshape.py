import pyarrow.compute as pc

from tidyground.compute import FunctionCallExpression, MeanAggregation, MinAggregation
from tidyground.dataframe import Dataframe, col

df = Dataframe.open_csv("data/interviews.csv", na="NULL") \
  .mutate(year=FunctionCallExpression(pc.year, col("interview_date"))) \
  .spread("items_owned", missing_column="no_listed_items") \
  .spread("months_lack_food") \
  .row_sums("number_months_lack_food", "Apr", "Sept") \
  .row_sums("number_items", "bicycle", "television") \
  .collect()

print(df.to_arrow())
df.write_csv("data/interviews_plotting.csv")

# Average household size by village and association membership,
# largest first, leaving out who didn't answer.
summary = Dataframe.open_csv("data/interviews.csv", na="NULL") \
  .filter(FunctionCallExpression(pc.is_valid, col("memb_assoc"))) \
  .group_by("village", "memb_assoc") \
  .summarize(mean_no_membrs=MeanAggregation("no_membrs"),
             min_membrs=MinAggregation("no_membrs")) \
  .arrange("min_membrs", descending=True)
print(summary.to_arrow())

print(Dataframe.open_csv("data/interviews.csv", na="NULL").count("village", sort=True).to_arrow())
