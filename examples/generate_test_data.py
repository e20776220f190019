import os
import csv
import random
from datetime import datetime, timedelta

if not os.path.exists("data"):
    os.mkdir("data")

if not os.path.exists("data/interviews.csv"):
  # Genera interviews.csv, shaped like the SAFI survey export
  villages = ["God", "Chirodzo", "Ruaca"]
  items = ["bicycle", "television", "solar_panel", "table", "cow_cart", "radio",
           "cow_plough", "solar_torch", "mobile_phone", "motorcyle", "fridge",
           "electricity", "sofa_set", "lorry", "sterio", "computer", "car"]
  months = ["Jan", "Feb", "Mar", "Apr", "May", "June", "July", "Aug", "Sept", "Oct", "Nov", "Dec"]
  start_date = datetime(2016, 11, 16)

  interviews = []
  for key_id in range(1, 132):
    interview_date = start_date + timedelta(days=random.randint(0, 200))
    owned = random.sample(items, random.randint(0, 6))
    lack_food = random.sample(months, random.randint(0, 5))
    interviews.append([
      key_id,
      random.choice(villages),
      interview_date.strftime("%Y-%m-%d"),
      random.randint(2, 19),
      random.randint(1, 8),
      random.choice(["yes", "no", "NULL"]),
      ";".join(owned) if owned else random.choice(["NULL", ""]),
      ";".join(lack_food) if lack_food else "none",
    ])

  with open('data/interviews.csv', 'w', newline='') as f:
    writer = csv.writer(f)
    writer.writerow(["key_id", "village", "interview_date", "no_membrs", "rooms",
                     "memb_assoc", "items_owned", "months_lack_food"])
    writer.writerows(interviews)
